"""Tests for the notification sink: authgate/services/email_service.py and
authgate/utils/email_utils.py. SMTP is replaced by in-process fakes."""

import logging
import smtplib

import pytest

from authgate.core.errors import MailDeliveryError
from authgate.services import email_service
from authgate.services.email_service import EmailNotifier, LogNotifier, get_notifier
from authgate.utils import email_utils


class FakeSMTP:
    sent: list = []

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        pass

    def sendmail(self, from_addr, to_addrs, msg):
        FakeSMTP.sent.append((from_addr, to_addrs, msg))


@pytest.fixture
def captured(monkeypatch):
    calls = []

    def fake_send_mail(to_email, subject, html_body, text_body=None):
        calls.append((to_email, subject, html_body, text_body))

    monkeypatch.setattr(email_service, "send_mail", fake_send_mail)
    return calls


async def test_verification_email_contains_link(captured):
    await EmailNotifier(base_url="https://app.x.com/").send_verification_email("a@x.com", "tok123")

    (to, subject, html, text), = captured
    assert to == "a@x.com"
    assert "confirm" in subject.lower()
    assert "https://app.x.com/new-verification?token=tok123" in html
    assert "https://app.x.com/new-verification?token=tok123" in text


async def test_reset_email_contains_link(captured):
    await EmailNotifier(base_url="https://app.x.com").send_reset_password_email("a@x.com", "tok456")

    (to, subject, html, text), = captured
    assert "https://app.x.com/new-password?token=tok456" in text


async def test_log_notifier(caplog):
    with caplog.at_level(logging.WARNING, logger="authgate.services.email_service"):
        await LogNotifier(base_url="http://localhost").send_verification_email("a@x.com", "t1")
    assert "http://localhost/new-verification?token=t1" in caplog.text


def test_get_notifier_without_mail_server(monkeypatch):
    monkeypatch.setattr(email_service.settings, "MAIL_SERVER", None)
    assert isinstance(get_notifier(), LogNotifier)
    monkeypatch.setattr(email_service.settings, "MAIL_SERVER", "smtp.x.com")
    assert isinstance(get_notifier(), EmailNotifier)


def test_send_mail_over_smtp(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(email_utils.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(email_utils.settings, "MAIL_SERVER", "smtp.x.com")

    email_utils.send_mail("a@x.com", "Hi", "<p>hi</p>", "hi")

    (from_addr, to_addrs, msg), = FakeSMTP.sent
    assert to_addrs == ["a@x.com"]
    assert "Subject: Hi" in msg


def test_send_mail_failure_raises(monkeypatch):
    class BrokenSMTP(FakeSMTP):
        def sendmail(self, *args):
            raise smtplib.SMTPRecipientsRefused({})

    monkeypatch.setattr(email_utils.smtplib, "SMTP", BrokenSMTP)
    monkeypatch.setattr(email_utils.settings, "MAIL_SERVER", "smtp.x.com")

    with pytest.raises(MailDeliveryError):
        email_utils.send_mail("a@x.com", "Hi", "<p>hi</p>")
