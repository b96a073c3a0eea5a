# authgate/services/email_service.py
from __future__ import annotations

import logging
from typing import Protocol

from starlette.concurrency import run_in_threadpool

from authgate.core.config import settings
from authgate.utils.email_utils import send_mail

log = logging.getLogger(__name__)

# Pages of the web front end that take the token from the query string
VERIFY_PATH = "/new-verification"
RESET_PATH = "/new-password"


class Notifier(Protocol):
    async def send_verification_email(self, email: str, token: str) -> None: ...

    async def send_reset_password_email(self, email: str, token: str) -> None: ...


def _build_url(base_url: str, path: str, token: str) -> str:
    return f"{base_url.rstrip('/')}{path}?token={token}"


class EmailNotifier:
    """Delivers tokens by SMTP. Failures raise MailDeliveryError."""

    def __init__(self, base_url: str = settings.PUBLIC_BASE_URL, app_name: str = settings.APP_NAME):
        self.base_url = base_url
        self.app_name = app_name

    async def send_verification_email(self, email: str, token: str) -> None:
        link = _build_url(self.base_url, VERIFY_PATH, token)
        subject = "Please confirm your email address"
        html = f"""
        <div style="font-family: Arial, sans-serif; line-height: 1.6;">
            <h2 style="color: #2563eb;">Welcome to {self.app_name}!</h2>
            <p>Hello {email},</p>
            <p>please confirm your email address to activate your account:</p>
            <p style="margin: 24px 0;">
                <a href="{link}" style="background-color: #2563eb; color: #ffffff; padding: 12px 24px; text-decoration: none; border-radius: 6px; font-weight: bold;">
                    Confirm email
                </a>
            </p>
            <p>If you did not sign up, you can ignore this message.</p>
        </div>
        """.strip()
        text = f"""Welcome to {self.app_name}!

Hello {email},

please confirm your email address to activate your account:
{link}

If you did not sign up, you can ignore this message.
""".strip()
        await run_in_threadpool(send_mail, email, subject, html, text)

    async def send_reset_password_email(self, email: str, token: str) -> None:
        link = _build_url(self.base_url, RESET_PATH, token)
        subject = "Reset your password"
        text = (
            f"Hello {email},\n\n"
            f"you asked to reset your password.\n"
            f"Link:\n\n{link}\n\n"
            f"If this was not you, ignore this email."
        )
        html = (
            f"<p>Hello <b>{email}</b>,</p>"
            f"<p>you asked to reset your password.</p>"
            f'<p><a href="{link}" target="_blank">Click here to set a new password</a></p>'
            f"<p>If this was not you, ignore this email.</p>"
        )
        await run_in_threadpool(send_mail, email, subject, html, text)


class LogNotifier:
    """Development sink: no SMTP server configured, links go to the log."""

    def __init__(self, base_url: str = settings.PUBLIC_BASE_URL):
        self.base_url = base_url

    async def send_verification_email(self, email: str, token: str) -> None:
        log.warning("[MAIL-DEV] verification for %s: %s", email, _build_url(self.base_url, VERIFY_PATH, token))

    async def send_reset_password_email(self, email: str, token: str) -> None:
        log.warning("[MAIL-DEV] password reset for %s: %s", email, _build_url(self.base_url, RESET_PATH, token))


def get_notifier() -> Notifier:
    if settings.MAIL_SERVER:
        return EmailNotifier()
    return LogNotifier()
