"""Tests for outbound account email."""

import smtplib
from unittest.mock import patch

import pytest

from account_service.config import Settings
from account_service.services.mail import (
    MailDeliveryError,
    MailService,
    password_changed_message,
    reset_instructions_message,
)


class TestMessages:
    """Tests for composing account email."""

    def test_reset_instructions(self):
        """Reset mail links to the reset endpoint on the given host."""
        message = reset_instructions_message("user@example.com", "no-reply@example.com", "localhost:3000", "abc123")
        assert message.to == "user@example.com"
        assert message.sender == "no-reply@example.com"
        assert message.subject == "Reset your password!"
        assert "http://localhost:3000/api/reset/abc123" in message.text

    def test_password_changed(self):
        """Confirmation mail names the account."""
        message = password_changed_message("user@example.com", "no-reply@example.com")
        assert message.subject == "Your password has been changed"
        assert "user@example.com has just been changed" in message.text


class TestMailService:
    """Tests for delivering account email."""

    def test_outside_production_only_logs(self, settings: Settings):
        """Outside production the message is logged, not sent."""
        service = MailService(settings)
        message = password_changed_message("user@example.com", "no-reply@example.com")
        with patch("account_service.services.mail.smtplib.SMTP") as mock_smtp, patch(
            "account_service.services.mail.logger"
        ) as mock_logger:
            service.send(message)

        mock_smtp.assert_not_called()
        mock_logger.info.assert_called_once()

    def test_production_sends_with_starttls_and_login(self, production_settings: Settings):
        """Production upgrades to TLS and logs in with the URI credentials."""
        service = MailService(production_settings)
        message = password_changed_message("user@example.com", production_settings.SMTP_SENDER)
        with patch("account_service.services.mail.smtplib.SMTP") as mock_smtp:
            mock_smtp.return_value.has_extn.return_value = True
            service.send(message)

        conn = mock_smtp.return_value
        conn.starttls.assert_called_once()
        conn.login.assert_called_once_with("mailer", "secret")
        sent = conn.__enter__.return_value.send_message.call_args[0][0]
        assert sent["To"] == "user@example.com"
        assert sent["Subject"] == "Your password has been changed"

    def test_smtps_uses_ssl(self):
        """smtps URIs connect over SSL on port 465."""
        settings = Settings(
            SECRET="test-secret",
            SMTP_URI="smtps://mail.example.com",
            SMTP_SENDER="no-reply@example.com",
            APP_ENV="production",
        )
        with patch("account_service.services.mail.smtplib.SMTP_SSL") as mock_ssl:
            MailService(settings).send(password_changed_message("user@example.com", settings.SMTP_SENDER))

        mock_ssl.assert_called_once_with("mail.example.com", 465, timeout=30)
        mock_ssl.return_value.login.assert_not_called()

    def test_smtp_failure_raises(self, production_settings: Settings):
        """SMTP errors surface as MailDeliveryError."""
        service = MailService(production_settings)
        with patch("account_service.services.mail.smtplib.SMTP") as mock_smtp:
            mock_smtp.return_value.__enter__.return_value.send_message.side_effect = smtplib.SMTPRecipientsRefused({})
            with pytest.raises(MailDeliveryError):
                service.send(password_changed_message("user@example.com", "no-reply@example.com"))
