from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

class UserRoleCreate(BaseModel):
    role_id: str = Field(description="Role to assign")

class UserRoleGet(BaseModel):
    user_id: str
    role_id: str
    created_at: Optional[datetime] = None
    created_by: Optional[str] = Field(None, description="User who made the assignment")

    model_config = ConfigDict(from_attributes=True)
