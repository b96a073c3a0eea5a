# authgate/utils/email_utils.py
import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import formataddr

from authgate.core.config import settings
from authgate.core.errors import MailDeliveryError

log = logging.getLogger(__name__)


def send_mail(to_email: str, subject: str, html_body: str, text_body: str | None = None) -> None:
    """Send one email via SMTP. Blocking; raises MailDeliveryError on failure."""
    msg = MIMEMultipart("alternative")
    msg["From"] = formataddr((settings.MAIL_FROM_NAME, str(settings.MAIL_FROM)))
    msg["To"] = to_email
    msg["Subject"] = subject

    if text_body:
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))

    try:
        with smtplib.SMTP(settings.MAIL_SERVER, settings.MAIL_PORT, timeout=15) as server:
            if settings.MAIL_USE_TLS:
                server.starttls()
            if settings.MAIL_USERNAME and settings.MAIL_PASSWORD:
                server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
            server.sendmail(str(settings.MAIL_FROM), [to_email], msg.as_string())
    except (smtplib.SMTPException, OSError) as ex:
        log.error("Mail to %s failed: %s", to_email, ex)
        raise MailDeliveryError(f"could not deliver mail to {to_email}") from ex

    log.info("Mail sent to %s: %s", to_email, subject)
