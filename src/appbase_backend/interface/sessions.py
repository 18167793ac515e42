from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

class SessionInfo(BaseModel):
    session_token: str = Field(description="Session identifier")
    created_at: Optional[datetime] = None
    expires: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    browser: str = "Unknown"
    os: str = "Unknown"
    device: str = "Desktop"
    is_current: bool = False

    @property
    def display_name(self) -> str:
        return f"{self.browser} on {self.os} ({self.device})"

class SessionCount(BaseModel):
    active: int

class SessionsRevoked(BaseModel):
    ok: bool = True
    revoked: int = 0
