from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

PERMISSION_ID_PATTERN = r"^[a-z][a-z0-9_]*:[a-z][a-z0-9_]*$"

class PermissionGet(BaseModel):
    id: str = Field(description="Permission id in module:action form")
    module: str = Field(description="Grouping module")
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class PermissionsByModule(BaseModel):
    modules: Dict[str, List[PermissionGet]] = Field(default_factory=dict)

class PermissionQuery(BaseModel):
    module: Optional[str] = Field(None, description="Restrict to one module")

class RolePermissionAssign(BaseModel):
    permission_id: str = Field(max_length=100, pattern=PERMISSION_ID_PATTERN)

class PermissionCheckResult(BaseModel):
    """Outcome of an all-permissions check.

    ``missing_permissions`` is None when the check passed and otherwise lists the
    requested ids that are absent, in request order.
    """
    has_permission: bool
    missing_permissions: Optional[List[str]] = None

    @field_validator('missing_permissions')
    @classmethod
    def empty_missing_is_none(cls, v):
        return v or None
