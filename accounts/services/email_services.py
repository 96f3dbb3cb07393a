import logging
import smtplib
from email.mime.text import MIMEText
from typing import Protocol

from accounts.config import settings

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send(self, to_email: str, subject: str, html_body: str) -> bool: ...


WELCOME_TEMPLATE = """<p>Dear {first_name},</p>
<p>Thank you for signing up with {brand}. Your account has been created successfully.</p>
<p>Best Regards,<br>{brand} Team</p>"""

OTP_TEMPLATE = """<p>Hello,</p>
<p>Use the code below to reset your {brand} password:</p>
<p style="font-size:28px; font-weight:bold; letter-spacing:6px;">{otp}</p>
<p>This code is valid for {minutes} minutes. If you didn't request it, you may ignore this email.</p>
<p>Best Regards,<br>{brand} Team</p>"""


def render_welcome_email(first_name: str) -> tuple[str, str]:
    subject = f"Welcome to {settings.BRAND_NAME}!"
    return subject, WELCOME_TEMPLATE.format(first_name=first_name, brand=settings.BRAND_NAME)


def render_otp_email(otp: str, ttl_seconds: int) -> tuple[str, str]:
    subject = f"Your {settings.BRAND_NAME} password reset code"
    minutes = max(ttl_seconds // 60, 1)
    return subject, OTP_TEMPLATE.format(otp=otp, minutes=minutes, brand=settings.BRAND_NAME)


class SmtpNotifier:
    """Sends HTML mail through an authenticated STARTTLS SMTP relay."""

    def __init__(
        self,
        host: str | None = settings.SMTP_HOST,
        port: int = settings.SMTP_PORT,
        user: str | None = settings.SMTP_USER,
        password: str | None = settings.SMTP_PASS,
        from_email: str | None = settings.FROM_EMAIL,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_email = from_email
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.host and self.from_email)

    def send(self, to_email: str, subject: str, html_body: str) -> bool:
        if not self.configured:
            logger.warning("SMTP not configured. Dropping email '%s' to %s", subject, to_email)
            return False

        msg = MIMEText(html_body, "html")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = to_email

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send email '%s' to %s", subject, to_email)
            return False

        logger.info("Email '%s' sent to %s", subject, to_email)
        return True


notifier = SmtpNotifier()
