"""
Resolution of the email delivery channel.

The channel is chosen once, at startup, in a fixed order (SMTP, Gmail, console)
and the bound instance is reused for the life of the process.
"""

import logging
import threading
from typing import Optional

from .base import EmailService
from .console import ConsoleEmailService
from .smtp import GmailEmailService, SmtpEmailService

logger = logging.getLogger(__name__)

DEFAULT_FROM_ADDRESS = "no-reply@localhost"

_email_service: Optional[EmailService] = None
_lock = threading.Lock()


def _missing(config, names) -> list:
    return [name for name in names if not getattr(config, name, None)]


def resolve_email_service(config) -> EmailService:
    """Pick the first fully configured provider.

    A provider with only part of its variables set is skipped with a warning
    so a typo does not silently fall through to the console channel.
    """

    smtp_vars = ["SMTP_HOST", "SMTP_USER", "SMTP_PASS"]
    missing_smtp = _missing(config, smtp_vars)

    if not missing_smtp:
        logger.info(f"Email provider: SMTP ({config.SMTP_HOST}:{config.SMTP_PORT})")
        return SmtpEmailService(
            host=config.SMTP_HOST,
            port=config.SMTP_PORT,
            username=config.SMTP_USER,
            password=config.SMTP_PASS,
            from_address=config.FROM_EMAIL or config.SMTP_USER,
        )
    elif len(missing_smtp) < len(smtp_vars):
        logger.warning(f"SMTP partially configured, missing {', '.join(missing_smtp)}")

    gmail_vars = ["GMAIL_USER", "GMAIL_APP_PASSWORD"]
    missing_gmail = _missing(config, gmail_vars)

    if not missing_gmail:
        logger.info(f"Email provider: Gmail ({config.GMAIL_USER})")
        return GmailEmailService(
            username=config.GMAIL_USER,
            app_password=config.GMAIL_APP_PASSWORD,
            from_address=config.FROM_EMAIL,
        )
    elif len(missing_gmail) < len(gmail_vars):
        logger.warning(f"Gmail partially configured, missing {', '.join(missing_gmail)}")

    logger.info("Email provider: console (messages are logged, not sent)")
    return ConsoleEmailService(config.FROM_EMAIL or DEFAULT_FROM_ADDRESS)


def init_email_service(config=None) -> EmailService:
    """Resolve and bind the process-wide channel."""
    global _email_service

    if config is None:
        from appbase_backend.settings import settings as config

    with _lock:
        _email_service = resolve_email_service(config)

    return _email_service


def get_email_service() -> EmailService:
    if _email_service is None:
        return init_email_service()
    return _email_service


def set_email_service(service: Optional[EmailService]) -> None:
    """Bind an explicit instance, or clear the binding with None."""
    global _email_service

    with _lock:
        _email_service = service
