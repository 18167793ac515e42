"""
Outbound notification channel (email).
"""

from .base import EmailMessage, EmailProvider, EmailService
from .console import ConsoleEmailService
from .smtp import GmailEmailService, SmtpEmailService
from .registry import get_email_service, init_email_service, resolve_email_service, set_email_service

__all__ = [
    'EmailMessage',
    'EmailProvider',
    'EmailService',
    'ConsoleEmailService',
    'SmtpEmailService',
    'GmailEmailService',
    'get_email_service',
    'init_email_service',
    'resolve_email_service',
    'set_email_service',
]
