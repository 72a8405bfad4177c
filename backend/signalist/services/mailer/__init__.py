"""Email delivery service."""

from .client import SMTPMailer, create_mailer
from .config import MailerConfig
from .exceptions import (
    MailDeliveryError,
    MailerAuthError,
    MailerConfigError,
    MailerError,
    MailRejectedError,
)
from .models import DeliveryResult

__all__ = [
    "SMTPMailer",
    "create_mailer",
    "MailerConfig",
    "DeliveryResult",
    "MailerError",
    "MailerConfigError",
    "MailerAuthError",
    "MailRejectedError",
    "MailDeliveryError",
]
