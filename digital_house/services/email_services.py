import logging
import smtplib
from email.mime.text import MIMEText

from digital_house.config import settings

logger = logging.getLogger(__name__)

SIGNATURE = "\n\n- Digital House"


class MailNotConfigured(RuntimeError):
    pass


def _send(to_email: str, subject: str, body: str) -> None:
    if not settings.SMTP_HOST:
        raise MailNotConfigured("SMTP_HOST is not set")

    msg = MIMEText(body)
    msg["Subject"] = subject
    msg["From"] = settings.MAIL_FROM or settings.SMTP_USER or ""
    msg["To"] = to_email.strip().lower()

    smtp_class = smtplib.SMTP_SSL if settings.SMTP_SECURE else smtplib.SMTP
    with smtp_class(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS) as server:
        if not settings.SMTP_SECURE:
            server.starttls()
        if settings.SMTP_USER and settings.SMTP_PASS:
            server.login(settings.SMTP_USER, settings.SMTP_PASS)
        server.send_message(msg)
    logger.info("Sent mail subject=%r to=%s", subject, msg["To"])


def send_otp_email(to_email: str, otp: str, expires_minutes: int) -> None:
    _send(
        to_email,
        "Your Digital House verification code",
        f"Your verification code is {otp}. It expires in {expires_minutes} minutes. "
        "Welcome to the community!",
    )


def send_approval_email(to_email: str, full_name: str | None = None, remarks: str | None = None) -> None:
    name = f" {full_name}" if full_name else ""
    remark_line = f"\n\nRemarks: {remarks.strip()}" if remarks and remarks.strip() else ""
    _send(
        to_email,
        "Your Digital House account has been approved",
        f"Hi{name},\n\nYour Digital House account has been approved. You can now sign in with "
        "your email and use the one-time code sent to your inbox. Welcome to the community!"
        f"{remark_line}{SIGNATURE}",
    )


def send_rejection_email(to_email: str, full_name: str | None = None, remarks: str | None = None) -> None:
    name = f" {full_name}" if full_name else ""
    if remarks and remarks.strip():
        remark_line = f"\n\nReason: {remarks.strip()}"
    else:
        remark_line = "\n\nPlease contact support if you have questions."
    _send(
        to_email,
        "Your Digital House account was not approved",
        f"Hi{name},\n\nAfter review, your Digital House account was not approved at this time."
        f"{remark_line}{SIGNATURE}",
    )
