"""
Out-of-band delivery of password reset tokens.
"""
from email.mime.text import MIMEText
from typing import Protocol
from urllib.parse import urlencode
import logging
import smtplib
import ssl

from .config import Settings
from .errors import EmailDeliveryError

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    def send_password_reset_email(self, to: str, token: str) -> None: ...


def build_reset_url(settings: Settings, token: str) -> str:
    protocol = "https" if settings.is_production else "http"
    prefix = settings.API_PREFIX.rstrip("/")
    return f"{protocol}://{settings.APP_HOST}{prefix}/reset-password?{urlencode({'token': token})}"


def _redact_email(email: str) -> str:
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class LogEmailSender:
    """Dev sender: writes the reset link to the log instead of mailing it."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def send_password_reset_email(self, to: str, token: str) -> None:
        logger.info("[DEV] Password reset link for %s: %s", to, build_reset_url(self.settings, token))


class SmtpEmailSender:
    def __init__(self, settings: Settings):
        self.settings = settings

    def build_message(self, to: str, token: str) -> MIMEText:
        reset_url = build_reset_url(self.settings, token)
        body = (
            "Hello,\n\n"
            "We received a request to reset your password. "
            "Use the link below to choose a new one:\n\n"
            f"{reset_url}\n\n"
            f"The link expires in {self.settings.RESET_TOKEN_EXPIRE_MINUTES} minutes. "
            "If you did not request a password reset, please ignore this email.\n"
        )
        msg = MIMEText(body, "plain")
        msg["Subject"] = "Password Reset"
        msg["From"] = self.settings.SMTP_FROM
        msg["To"] = to
        return msg

    def send_password_reset_email(self, to: str, token: str) -> None:
        s = self.settings
        msg = self.build_message(to, token)
        try:
            with smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT_SECONDS) as server:
                if s.SMTP_USE_TLS:
                    server.starttls(context=ssl.create_default_context())
                if s.SMTP_USERNAME and s.SMTP_PASSWORD:
                    server.login(s.SMTP_USERNAME, s.SMTP_PASSWORD)
                server.sendmail(s.SMTP_FROM, [to], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                "Failed to send password reset email to=%s host=%s: %s",
                _redact_email(to), s.SMTP_HOST, e
            )
            raise EmailDeliveryError(str(e)) from e

        logger.info("Password reset email sent to=%s", _redact_email(to))


def create_email_sender(settings: Settings) -> EmailSender:
    if settings.SMTP_HOST:
        return SmtpEmailSender(settings)
    return LogEmailSender(settings)
