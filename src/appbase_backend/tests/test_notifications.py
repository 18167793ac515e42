import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from appbase_backend.notifications import (
    ConsoleEmailService,
    EmailMessage,
    EmailProvider,
    GmailEmailService,
    SmtpEmailService,
    get_email_service,
    init_email_service,
    resolve_email_service,
    set_email_service,
)


def make_config(**overrides):
    values = dict(
        SMTP_HOST=None,
        SMTP_PORT=465,
        SMTP_USER=None,
        SMTP_PASS=None,
        GMAIL_USER=None,
        GMAIL_APP_PASSWORD=None,
        FROM_EMAIL=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


SMTP = dict(SMTP_HOST="mail.example.com", SMTP_USER="mailer", SMTP_PASS="secret")
GMAIL = dict(GMAIL_USER="someone@gmail.com", GMAIL_APP_PASSWORD="app-pass")


class TestProviderResolution:

    def test_smtp_wins_when_complete(self):
        service = resolve_email_service(make_config(**SMTP, **GMAIL, FROM_EMAIL="noreply@example.com"))

        assert isinstance(service, SmtpEmailService)
        assert service.provider == EmailProvider.SMTP
        assert service.host == "mail.example.com"
        assert service.from_address == "noreply@example.com"

    def test_gmail_when_smtp_absent(self):
        service = resolve_email_service(make_config(**GMAIL))

        assert isinstance(service, GmailEmailService)
        assert service.host == "smtp.gmail.com"
        assert service.secure is True
        assert service.from_address == "someone@gmail.com"

    def test_console_when_nothing_configured(self):
        service = resolve_email_service(make_config())
        assert isinstance(service, ConsoleEmailService)

    def test_partial_smtp_falls_through_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            service = resolve_email_service(make_config(SMTP_HOST="mail.example.com", **GMAIL))

        assert isinstance(service, GmailEmailService)
        assert "SMTP_USER" in caplog.text
        assert "SMTP_PASS" in caplog.text

    def test_binding_is_reused(self):
        try:
            first = init_email_service(make_config())
            assert get_email_service() is first
            assert get_email_service() is first
        finally:
            set_email_service(None)


class TestSmtpDelivery:

    @pytest.fixture
    def message(self):
        return EmailMessage(to="ada@example.com", subject="Hello", text="plain body", html="<p>html body</p>")

    @pytest.mark.asyncio
    async def test_implicit_tls_on_465(self, message):
        service = SmtpEmailService("mail.example.com", 465, "mailer", "secret", "noreply@example.com")

        with patch("smtplib.SMTP_SSL") as smtp_ssl:
            client = smtp_ssl.return_value.__enter__.return_value
            await service.send_email(message)

        smtp_ssl.assert_called_once()
        assert smtp_ssl.call_args.args[:2] == ("mail.example.com", 465)
        client.login.assert_called_once_with("mailer", "secret")

        sent = client.send_message.call_args.args[0]
        assert sent["To"] == "ada@example.com"
        assert sent["From"] == "noreply@example.com"
        assert sent["Subject"] == "Hello"

    @pytest.mark.asyncio
    async def test_starttls_on_other_ports(self, message):
        service = SmtpEmailService("mail.example.com", 587, "mailer", "secret", "noreply@example.com")

        with patch("smtplib.SMTP") as smtp:
            client = smtp.return_value.__enter__.return_value
            await service.send_email(message)

        client.starttls.assert_called_once()
        client.login.assert_called_once_with("mailer", "secret")
        client.send_message.assert_called_once()

    @pytest.mark.asyncio
    async def test_delivery_errors_propagate(self, message):
        service = SmtpEmailService("mail.example.com", 465, "mailer", "secret", "noreply@example.com")

        with patch("smtplib.SMTP_SSL", side_effect=OSError("connection refused")):
            with pytest.raises(OSError):
                await service.send_email(message)

    def test_message_has_html_alternative(self, message):
        service = SmtpEmailService("mail.example.com", 465, "mailer", "secret", "noreply@example.com")
        mime = service.build_message(message)

        assert mime.is_multipart()
        assert [part.get_content_type() for part in mime.iter_parts()] == ["text/plain", "text/html"]


class TestConsoleDelivery:

    @pytest.mark.asyncio
    async def test_reset_email_is_logged(self, caplog):
        service = ConsoleEmailService("noreply@example.com")

        with caplog.at_level(logging.INFO, logger="appbase_backend.notifications.console"):
            await service.send_password_reset_email("ada@example.com", "http://app/reset-password?token=abc", 30)

        assert "ada@example.com" in caplog.text
        assert "http://app/reset-password?token=abc" in caplog.text
        assert "30 minutes" in caplog.text


class TestResetTemplate:

    @pytest.mark.asyncio
    async def test_reset_template(self):
        service = ConsoleEmailService("noreply@example.com")
        service.send_email = AsyncMock()

        await service.send_password_reset_email("ada@example.com", "http://app/x", 15)

        message = service.send_email.call_args.args[0]
        assert message.subject == "Reset your password"
        assert "15 minutes" in message.text
        assert 'href="http://app/x"' in message.html

