from __future__ import annotations

import smtplib
from types import SimpleNamespace

import pytest

from roombook.services import email as email_service
from roombook.services import notifications as notification_service
from roombook.services.email import EmailDeliveryError


def _settings(**overrides):
    defaults = dict(
        smtp_host="smtp.primary.test",
        smtp_port=587,
        smtp_username="primary-user",
        smtp_password="primary-pass",
        smtp_from_email="primary@example.com",
        smtp_from_name="RoomBook",
        smtp_use_tls=True,
        smtp_use_ssl=False,
        smtp_backup_host=None,
        smtp_backup_port=587,
        smtp_backup_username=None,
        smtp_backup_password=None,
        smtp_backup_from_email=None,
        smtp_backup_use_tls=True,
        smtp_backup_use_ssl=False,
        smtp_retry_attempts=2,
        smtp_retry_backoff_seconds=0.0,
        smtp_timeout_seconds=5,
    )
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _backup(**overrides):
    return _settings(
        smtp_backup_host="smtp.backup.test",
        smtp_backup_username="backup-user",
        smtp_backup_password="backup-pass",
        smtp_backup_from_email="backup@example.com",
        **overrides,
    )


def _fake_smtp(on_send):
    class FakeSMTP:
        def __init__(self, host, port, timeout=None):
            self.host = host
            self.port = port

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            return False

        def starttls(self, context=None):
            return None

        def login(self, username, password):
            return None

        def send_message(self, message):
            return on_send(self, message)

    return FakeSMTP


def _install(monkeypatch, settings, on_send):
    monkeypatch.setattr(email_service, "get_settings", lambda: settings)
    fake = _fake_smtp(on_send)
    monkeypatch.setattr(email_service.smtplib, "SMTP", fake)
    monkeypatch.setattr(email_service.smtplib, "SMTP_SSL", fake)


def test_send_email_uses_backup_after_primary_rejection(monkeypatch):
    sends: list[tuple[str, str]] = []

    def on_send(smtp, message):
        sends.append((smtp.host, message["From"]))
        if smtp.host == "smtp.primary.test":
            raise smtplib.SMTPDataError(550, b"Daily user sending limit exceeded")
        return {}

    _install(monkeypatch, _backup(), on_send)

    email_service.send_email(
        to_email="recipient@example.com",
        subject="Room Reservation - New Reservation",
        text_content="body",
    )

    assert [host for host, _ in sends] == ["smtp.primary.test", "smtp.backup.test"]
    assert "backup@example.com" in sends[1][1]


def test_send_email_retries_connection_drop_and_succeeds(monkeypatch):
    attempt_counter = {"count": 0}

    def on_send(smtp, message):
        attempt_counter["count"] += 1
        if attempt_counter["count"] == 1:
            raise smtplib.SMTPServerDisconnected("network drop")
        return {}

    _install(monkeypatch, _settings(), on_send)

    email_service.send_email(to_email="recipient@example.com", subject="Reservation", text_content="hello")

    assert attempt_counter["count"] == 2


def test_send_email_raises_when_all_endpoints_reject(monkeypatch):
    def on_send(smtp, message):
        raise smtplib.SMTPDataError(550, b"rejected")

    _install(monkeypatch, _backup(), on_send)

    with pytest.raises(EmailDeliveryError) as exc_info:
        email_service.send_email(to_email="recipient@example.com", subject="Reservation", text_content="body")

    assert str(exc_info.value) == "SMTP message rejected"


def test_send_email_without_configuration_fails_fast(monkeypatch):
    monkeypatch.setattr(email_service, "get_settings", lambda: _settings(smtp_host=None))

    with pytest.raises(EmailDeliveryError, match="SMTP is not configured"):
        email_service.send_email(to_email="recipient@example.com", subject="Reservation", text_content="body")


def test_backup_on_same_endpoint_is_not_duplicated():
    endpoints = email_service.resolve_endpoints(_settings(smtp_backup_host="smtp.primary.test"))

    assert [(item.host, item.port) for item in endpoints] == [("smtp.primary.test", 587)]


def test_html_alternative_is_attached(monkeypatch):
    captured = []

    def on_send(smtp, message):
        captured.append(message)
        return {}

    _install(monkeypatch, _settings(), on_send)

    email_service.send_email(
        to_email="recipient@example.com",
        subject="Reservation",
        text_content="plain",
        html_content="<p>rich</p>",
    )

    assert captured[0]["From"] == "RoomBook <primary@example.com>"
    assert captured[0].get_body(preferencelist=("html",)).get_content().strip() == "<p>rich</p>"


def test_deliver_email_quietly_logs_failures(monkeypatch, caplog):
    def broken(**kwargs):
        raise EmailDeliveryError("SMTP connection failed")

    monkeypatch.setattr(notification_service, "send_email", broken)

    delivered = notification_service.deliver_email_quietly(
        to_email="recipient@example.com",
        subject="Reservation",
        text_content="body",
    )

    assert delivered is False
    assert "Notification email delivery failed for recipient@example.com" in caplog.text
