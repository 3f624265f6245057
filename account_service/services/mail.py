"""Outbound account email."""

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from urllib.parse import unquote, urlparse

from account_service.config import Settings

logger = logging.getLogger("account_service")


class MailDeliveryError(Exception):
    """Raised when a message cannot be handed to the SMTP server."""


@dataclass(frozen=True)
class MailMessage:
    to: str
    sender: str
    subject: str
    text: str

    def as_dict(self) -> dict[str, str]:
        return {"to": self.to, "from": self.sender, "subject": self.subject, "text": self.text}


def reset_instructions_message(to: str, sender: str, host: str, token: str) -> MailMessage:
    """Compose the message carrying the password reset link."""
    return MailMessage(
        to=to,
        sender=sender,
        subject="Reset your password!",
        text=(
            "You are receiving this email because you (or someone else) have requested "
            "the reset of the password for your account.\n\n"
            "Please click on the following link, or paste this into your browser "
            "to complete the process:\n\n"
            f"http://{host}/api/reset/{token}\n\n"
            "If you did not request this, please ignore this email and your password "
            "will remain unchanged.\n"
        ),
    )


def password_changed_message(to: str, sender: str) -> MailMessage:
    """Compose the confirmation sent after a password reset."""
    return MailMessage(
        to=to,
        sender=sender,
        subject="Your password has been changed",
        text=f"Hello,\n\nThis is a confirmation that the password for your account {to} has just been changed.\n",
    )


class MailService:
    """Delivers messages over SMTP in production; logs them everywhere else."""

    def __init__(self, settings: Settings) -> None:
        self.smtp_uri = settings.SMTP_URI
        self.sender = settings.SMTP_SENDER
        self.deliver = settings.is_production

    def _connect(self) -> smtplib.SMTP:
        parsed = urlparse(self.smtp_uri)
        host = parsed.hostname or "localhost"
        if parsed.scheme == "smtps":
            conn: smtplib.SMTP = smtplib.SMTP_SSL(host, parsed.port or 465, timeout=30)
        else:
            conn = smtplib.SMTP(host, parsed.port or 587, timeout=30)
            conn.ehlo()
            if conn.has_extn("starttls"):
                conn.starttls()
                conn.ehlo()
        if parsed.username:
            conn.login(unquote(parsed.username), unquote(parsed.password or ""))
        return conn

    def send(self, message: MailMessage) -> None:
        """Send ``message``. Raises MailDeliveryError on SMTP failure."""
        if not self.deliver:
            logger.info("MAIL (not sent outside production): %s", message.as_dict())
            return

        email = EmailMessage()
        email["To"] = message.to
        email["From"] = message.sender
        email["Subject"] = message.subject
        email.set_content(message.text)

        try:
            with self._connect() as conn:
                conn.send_message(email)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send mail to %s: %s", message.to, exc)
            raise MailDeliveryError(str(exc)) from exc

        logger.info("Mail sent to %s: %s", message.to, message.subject)
