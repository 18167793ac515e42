import logging

from .base import EmailMessage, EmailProvider, EmailService

logger = logging.getLogger(__name__)


class ConsoleEmailService(EmailService):
    """Development channel: messages go to the log instead of a mail server."""

    provider = EmailProvider.CONSOLE

    async def send_email(self, message: EmailMessage) -> None:
        logger.info(
            f"[console email] from={self.from_address} to={message.to} subject={message.subject!r}\n{message.text}"
        )
