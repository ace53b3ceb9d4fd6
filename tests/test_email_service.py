import smtplib
from datetime import date
from decimal import Decimal

import pytest

from invoice_dashboard.core.config import Settings
from invoice_dashboard.services import email_service as email_module
from invoice_dashboard.services.email_service import EmailService


class FakeSMTP:
    instances = []
    fail_with = None

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.calls = []
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def send_message(self, msg):
        if FakeSMTP.fail_with:
            raise FakeSMTP.fail_with
        self.messages.append(msg)


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(email_module.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def make_service(**overrides):
    values = {
        "smtp_host": "smtp.example.com",
        "smtp_port": 2525,
        "smtp_user": "mailer",
        "smtp_password": "secret",
        "email_from": "billing@example.com",
        "smtp_use_tls": True,
        "smtp_timeout": 5.0,
    }
    values.update(overrides)
    return EmailService(Settings(**values))


def test_build_reminder_message():
    service = make_service()

    msg = service.build_reminder_message(
        "jane@acme.test", "Jane Doe", Decimal("1234.5"), date(2025, 1, 5), "Website redesign"
    )

    assert msg["Subject"] == "Payment Reminder - Jane Doe"
    assert msg["To"] == "jane@acme.test"
    assert msg["From"] == "billing@example.com"
    assert msg["Message-ID"]
    plain = msg.get_body(preferencelist=("plain",)).get_content()
    html = msg.get_body(preferencelist=("html",)).get_content()
    for body in (plain, html):
        assert "$1,234.50" in body
        assert "January 5, 2025" in body
        assert "Website redesign" in body


def test_message_ids_are_unique():
    service = make_service()
    args = ("jane@acme.test", "Jane", Decimal("10.00"), date(2025, 1, 5))

    first = service.build_reminder_message(*args)
    second = service.build_reminder_message(*args)

    assert first["Message-ID"] != second["Message-ID"]


def test_send_uses_configured_server(fake_smtp):
    service = make_service()

    result = service.send_payment_reminder("jane@acme.test", "Jane", Decimal("50.00"), date(2025, 3, 1))

    assert result.success is True
    assert result.error is None
    (server,) = fake_smtp.instances
    assert (server.host, server.port, server.timeout) == ("smtp.example.com", 2525, 5.0)
    assert server.calls == ["starttls", ("login", "mailer", "secret")]
    assert server.messages[0]["Message-ID"] == result.message_id


def test_send_without_tls_or_credentials(fake_smtp):
    service = make_service(smtp_use_tls=False, smtp_user="", smtp_password="")

    result = service.send_payment_reminder("jane@acme.test", "Jane", Decimal("50.00"), date(2025, 3, 1))

    assert result.success is True
    assert fake_smtp.instances[0].calls == []


def test_smtp_failure_is_reported_not_raised(fake_smtp):
    fake_smtp.fail_with = smtplib.SMTPRecipientsRefused({"jane@acme.test": (550, b"no such user")})
    service = make_service()

    result = service.send_payment_reminder("jane@acme.test", "Jane", Decimal("50.00"), date(2025, 3, 1))

    assert result.success is False
    assert result.message_id is None
    assert result.error


def test_connection_error_is_reported(monkeypatch):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(email_module.smtplib, "SMTP", refuse)
    service = make_service()

    result = service.send_payment_reminder("jane@acme.test", "Jane", Decimal("50.00"), date(2025, 3, 1))

    assert result.success is False
    assert "refused" in result.error


def test_unconfigured_service_does_not_send(fake_smtp):
    service = make_service(smtp_host="", email_from="", smtp_user="")

    assert service.is_configured is False
    result = service.send_payment_reminder("jane@acme.test", "Jane", Decimal("50.00"), date(2025, 3, 1))

    assert result.success is False
    assert result.error == "Email service not configured"
    assert fake_smtp.instances == []


def test_missing_recipient(fake_smtp):
    result = make_service().send_payment_reminder("", "Jane", Decimal("50.00"), date(2025, 3, 1))

    assert result.success is False
    assert fake_smtp.instances == []


def test_sender_falls_back_to_smtp_user():
    service = make_service(email_from="")

    assert service.sender == "mailer"
