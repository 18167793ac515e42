from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from appbase_backend.interface.base import BaseEntityGet, ListQuery

class RoleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50, description="Unique role name")
    description: Optional[str] = Field(None, max_length=4096)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Role name cannot be empty or only whitespace')
        return v.strip()

class RoleGet(BaseEntityGet):
    id: str
    name: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class RoleList(BaseModel):
    id: str
    name: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class RoleWithPermissions(RoleList):
    permissions: List[str] = Field(default_factory=list, description="Permission ids granted by the role")

class RoleQuery(ListQuery):
    name: Optional[str] = None
