from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from appbase_backend.interface.base import BaseEntityGet

class UserRegister(BaseModel):
    first_name: str = Field(min_length=1, max_length=255, description="User's first name")
    last_name: str = Field(min_length=1, max_length=255, description="User's last name")
    email: EmailStr = Field(description="User's email address")
    password: str = Field(min_length=1, description="Plaintext password, hashed before storage")

    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_names(cls, v):
        if not v.strip():
            raise ValueError('Name cannot be empty or only whitespace')
        return v.strip()

class UserGet(BaseEntityGet):
    id: str = Field(description="User unique identifier")
    name: Optional[str] = Field(None, description="Display name")
    email: str = Field(description="User's email address")
    email_verified: Optional[datetime] = Field(None, description="Timestamp of email verification")
    image: Optional[str] = None
    first_name: Optional[str] = Field(None, description="User's first name")
    last_name: Optional[str] = Field(None, description="User's last name")

    model_config = ConfigDict(from_attributes=True)
