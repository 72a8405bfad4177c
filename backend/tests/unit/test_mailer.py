"""Tests for the SMTP mailer, using a recording SMTP stand-in."""

import asyncio
import email
import smtplib

import pytest

from signalist.services.mailer import (
    MailDeliveryError,
    MailerAuthError,
    MailerConfig,
    MailerConfigError,
    MailRejectedError,
    SMTPMailer,
    create_mailer,
)

CONFIG = MailerConfig(
    smtp_host="smtp.example.com",
    smtp_port=2525,
    username="bot",
    password="pw",
    sender="news@signalist.app",
)


class RecordingSMTP:
    instances: list["RecordingSMTP"] = []
    fail_with: Exception | None = None

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls: list[str] = []
        self.sent: list[tuple] = []
        RecordingSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        self.calls.append("ehlo")

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append("login")
        if isinstance(self.fail_with, smtplib.SMTPAuthenticationError):
            raise self.fail_with

    def sendmail(self, sender, recipients, message):
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((sender, recipients, message))


@pytest.fixture(autouse=True)
def reset_smtp():
    RecordingSMTP.instances = []
    RecordingSMTP.fail_with = None
    yield


def _mailer() -> SMTPMailer:
    return SMTPMailer(CONFIG, smtp_factory=RecordingSMTP)


def test_requires_sender() -> None:
    with pytest.raises(MailerConfigError):
        SMTPMailer(MailerConfig())


def test_news_summary_email() -> None:
    result = asyncio.run(
        _mailer().send_news_summary_email(
            email="ada@example.com",
            date="Monday, October 19, 2026",
            news_content="<h3>Tech</h3><p>Apple rose.</p>",
        )
    )

    smtp = RecordingSMTP.instances[0]
    assert (smtp.host, smtp.port) == ("smtp.example.com", 2525)
    assert smtp.calls == ["ehlo", "starttls", "ehlo", "login"]

    sender, recipients, raw = smtp.sent[0]
    assert sender == "news@signalist.app"
    assert recipients == ["ada@example.com"]

    message = email.message_from_string(raw)
    assert message["Subject"] == "Market News Summary Today - Monday, October 19, 2026"
    assert message["To"] == "ada@example.com"
    assert result.recipient == "ada@example.com"
    assert result.message_id == message["Message-ID"]


def test_welcome_email_includes_intro() -> None:
    asyncio.run(
        _mailer().send_welcome_email(
            email="ada@example.com", name="Ada", intro="<p>Glad you are here.</p>"
        )
    )

    raw = RecordingSMTP.instances[0].sent[0][2]
    message = email.message_from_string(raw)
    html_part = [p for p in message.walk() if p.get_content_type() == "text/html"][0]
    body = html_part.get_payload(decode=True).decode()
    assert "Hi Ada," in body
    assert "<p>Glad you are here.</p>" in body


def test_refused_recipient_is_not_retryable() -> None:
    RecordingSMTP.fail_with = smtplib.SMTPRecipientsRefused({"x@example.com": (550, b"no")})

    with pytest.raises(MailRejectedError) as exc_info:
        asyncio.run(_mailer().send("x@example.com", "s", "p", "<p>h</p>"))
    assert exc_info.value.retryable is False
    assert exc_info.value.recipient == "x@example.com"


def test_temporary_failure_is_retryable() -> None:
    RecordingSMTP.fail_with = smtplib.SMTPDataError(451, b"try later")

    with pytest.raises(MailDeliveryError) as exc_info:
        asyncio.run(_mailer().send("x@example.com", "s", "p", "<p>h</p>"))
    assert exc_info.value.retryable is True


def test_bad_login() -> None:
    RecordingSMTP.fail_with = smtplib.SMTPAuthenticationError(535, b"bad credentials")

    with pytest.raises(MailerAuthError):
        asyncio.run(_mailer().send("x@example.com", "s", "p", "<p>h</p>"))


def test_factory_uses_given_config() -> None:
    mailer = create_mailer(CONFIG)
    assert isinstance(mailer, SMTPMailer)
    assert mailer.config.sender == "news@signalist.app"
