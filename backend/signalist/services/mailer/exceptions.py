"""Mail delivery exceptions."""


class MailerError(Exception):
    """Base mailer exception."""

    retryable: bool = False

    def __init__(self, message: str, recipient: str | None = None):
        super().__init__(message)
        self.recipient = recipient


class MailerConfigError(MailerError):
    """Config error."""

    pass


class MailerAuthError(MailerError):
    """SMTP login rejected."""

    pass


class MailRejectedError(MailerError):
    """Server refused the recipient or the message."""

    pass


class MailDeliveryError(MailerError):
    """Transient delivery failure (connection dropped, 4xx reply)."""

    retryable = True
