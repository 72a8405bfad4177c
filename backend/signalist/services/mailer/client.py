"""SMTP mailer for welcome and daily summary emails."""

from __future__ import annotations

import asyncio
import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from typing import Callable

from .config import MailerConfig
from .exceptions import (
    MailDeliveryError,
    MailerAuthError,
    MailerConfigError,
    MailRejectedError,
)
from .models import DeliveryResult

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome to Signalist - your stock market toolkit is ready!"
NEWS_SUMMARY_SUBJECT = "Market News Summary Today - {date}"


class SMTPMailer:
    """Sends multipart (plain + HTML) mail through one SMTP relay.

    ``smtplib`` is blocking, so each send runs in a worker thread and
    concurrent sends do not stall the event loop.
    """

    def __init__(
        self,
        config: MailerConfig | None = None,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
    ):
        self.config = config or MailerConfig()

        if not self.config.sender:
            raise MailerConfigError("sender is required. Provide via config.")

        self._smtp_factory = smtp_factory
        logger.info(f"Initialized SMTPMailer ({self.config.smtp_host}:{self.config.smtp_port})")

    async def send_welcome_email(
        self,
        email: str,
        name: str | None,
        intro: str,
    ) -> DeliveryResult:
        greeting = f"Hi {name}," if name else "Hi,"
        plain = f"{greeting}\n\n{intro}\n"
        body = f"<p>{html.escape(greeting)}</p>\n{intro}"
        return await self.send(email, WELCOME_SUBJECT, plain, body)

    async def send_news_summary_email(
        self,
        email: str,
        date: str,
        news_content: str,
    ) -> DeliveryResult:
        subject = NEWS_SUMMARY_SUBJECT.format(date=date)
        return await self.send(email, subject, news_content, news_content)

    async def send(
        self,
        recipient: str,
        subject: str,
        plain_body: str,
        html_body: str,
    ) -> DeliveryResult:
        """Deliver one message.

        Raises:
            MailerAuthError: Login rejected
            MailRejectedError: Recipient or message refused (permanent)
            MailDeliveryError: Connection-level or temporary failure
        """
        message_id = make_msgid(domain=self.config.sender.rsplit("@", 1)[-1])

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.config.sender_name, self.config.sender))
        msg["To"] = recipient
        msg["Message-ID"] = message_id
        msg.attach(MIMEText(plain_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        await asyncio.to_thread(self._deliver, recipient, msg)

        logger.info(f"Email sent to {recipient}: {subject}")
        return DeliveryResult(recipient=recipient, subject=subject, message_id=message_id)

    def _deliver(self, recipient: str, msg: MIMEMultipart) -> None:
        try:
            with self._smtp_factory(
                self.config.smtp_host,
                self.config.smtp_port,
                timeout=self.config.timeout_seconds,
            ) as server:
                server.ehlo()
                if self.config.use_starttls:
                    server.starttls()
                    server.ehlo()
                if self.config.username:
                    server.login(self.config.username, self.config.password)
                server.sendmail(self.config.sender, [recipient], msg.as_string())

        except smtplib.SMTPAuthenticationError as e:
            raise MailerAuthError(
                f"SMTP authentication failed: {e.smtp_error!r}", recipient=recipient
            ) from e
        except smtplib.SMTPRecipientsRefused as e:
            raise MailRejectedError(f"Recipient refused: {recipient}", recipient=recipient) from e
        except smtplib.SMTPResponseException as e:
            if 400 <= e.smtp_code < 500:
                raise MailDeliveryError(
                    f"Temporary SMTP failure {e.smtp_code}", recipient=recipient
                ) from e
            raise MailRejectedError(
                f"SMTP error {e.smtp_code}: {e.smtp_error!r}", recipient=recipient
            ) from e
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(f"SMTP delivery failed: {e}", recipient=recipient) from e


def create_mailer(config: MailerConfig | None = None) -> SMTPMailer:
    """Create an SMTPMailer instance."""
    return SMTPMailer(config=config)
