"""
Base classes for outbound email delivery.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class EmailProvider(str, Enum):
    """Available delivery channels, in resolution order."""
    SMTP = "smtp"
    GMAIL = "gmail"
    CONSOLE = "console"


class EmailMessage(BaseModel):
    """A single outbound message."""
    to: str = Field(..., description="Recipient address")
    subject: str = Field(..., description="Subject line")
    text: str = Field(..., description="Plain text body")
    html: Optional[str] = Field(None, description="Optional HTML alternative")


PASSWORD_RESET_SUBJECT = "Reset your password"

PASSWORD_RESET_TEXT = """You requested a password reset.

Open the following link to choose a new password. It expires in {ttl} minutes
and can only be used once:

{link}

If you did not request this, you can ignore this email.
"""

PASSWORD_RESET_HTML = """<p>You requested a password reset.</p>
<p><a href="{link}">Choose a new password</a></p>
<p>The link expires in {ttl} minutes and can only be used once.
If you did not request this, you can ignore this email.</p>
"""


class EmailService(ABC):
    """
    Abstract delivery channel.

    Implementations only need ``send_email``. Template helpers are shared.
    """

    provider: EmailProvider

    def __init__(self, from_address: str):
        self.from_address = from_address

    @abstractmethod
    async def send_email(self, message: EmailMessage) -> None:
        """Deliver ``message`` or raise."""

    async def send_password_reset_email(self, to: str, reset_link: str, ttl_minutes: int = 30) -> None:
        await self.send_email(
            EmailMessage(
                to=to,
                subject=PASSWORD_RESET_SUBJECT,
                text=PASSWORD_RESET_TEXT.format(link=reset_link, ttl=ttl_minutes),
                html=PASSWORD_RESET_HTML.format(link=reset_link, ttl=ttl_minutes),
            )
        )
