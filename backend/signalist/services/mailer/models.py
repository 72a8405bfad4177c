"""Mail delivery models."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class DeliveryResult(BaseModel):
    """Accepted-for-delivery receipt."""

    recipient: str
    subject: str
    message_id: str | None = None
    sent_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def __str__(self) -> str:
        """Human-readable status."""
        return f"Sent '{self.subject}' to {self.recipient}"
