import asyncio
import logging
import smtplib
import ssl
from email.message import EmailMessage as MIMEMessage

from .base import EmailMessage, EmailProvider, EmailService

logger = logging.getLogger(__name__)

GMAIL_SMTP_HOST = "smtp.gmail.com"
GMAIL_SMTP_PORT = 465


class SmtpEmailService(EmailService):
    """
    Delivers mail through an SMTP relay.

    Port 465 uses implicit TLS, any other port upgrades with STARTTLS.
    """

    provider = EmailProvider.SMTP

    def __init__(self, host: str, port: int, username: str, password: str, from_address: str, timeout: float = 30):
        super().__init__(from_address)
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout

    @property
    def secure(self) -> bool:
        return self.port == 465

    def build_message(self, message: EmailMessage) -> MIMEMessage:
        mime = MIMEMessage()
        mime["From"] = self.from_address
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime.set_content(message.text)
        if message.html:
            mime.add_alternative(message.html, subtype="html")
        return mime

    def _deliver(self, mime: MIMEMessage) -> None:
        context = ssl.create_default_context()

        if self.secure:
            with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context) as client:
                client.login(self.username, self.password)
                client.send_message(mime)
        else:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as client:
                client.starttls(context=context)
                client.login(self.username, self.password)
                client.send_message(mime)

    async def send_email(self, message: EmailMessage) -> None:
        mime = self.build_message(message)
        await asyncio.to_thread(self._deliver, mime)
        logger.info(f"Sent email '{message.subject}' via {self.provider.value} ({self.host}:{self.port})")


class GmailEmailService(SmtpEmailService):
    """SMTP preset for Gmail app passwords."""

    provider = EmailProvider.GMAIL

    def __init__(self, username: str, app_password: str, from_address: str = None):
        super().__init__(
            host=GMAIL_SMTP_HOST,
            port=GMAIL_SMTP_PORT,
            username=username,
            password=app_password,
            from_address=from_address or username,
        )
