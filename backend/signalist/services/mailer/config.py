"""Mail delivery config."""

from pydantic import BaseModel


class MailerConfig(BaseModel):
    """SMTP mailer config."""

    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    username: str = ""
    password: str = ""
    sender: str = ""
    sender_name: str = "Signalist"
    use_starttls: bool = True
    timeout_seconds: float = 30.0
