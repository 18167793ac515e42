from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

class TokenClaims(BaseModel):
    """Claims carried inside the signed session token.

    ``permissions`` is a snapshot taken at login. It can go stale until the next
    login and must only be used for UX gating, never for enforcement.
    """
    id: str
    email: str
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email_verified: Optional[datetime] = None
    permissions: List[str] = Field(default_factory=list)
    session_token: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class OriginMetadata(BaseModel):
    ip_address: str = "unknown"
    user_agent: str = "unknown"

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

class LoginResponse(BaseModel):
    ok: bool = True
    token: str
    token_type: str = "bearer"
    expires: datetime
    user: TokenClaims

class MeResponse(BaseModel):
    user: TokenClaims
    permissions: List[str] = Field(default_factory=list, description="Permissions as currently stored")

class PasswordResetRequest(BaseModel):
    email: EmailStr

class PasswordResetComplete(BaseModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=1)

class PasswordChange(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=1)
