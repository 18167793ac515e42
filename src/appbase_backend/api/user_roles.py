from typing import Annotated, List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from appbase_backend.database import get_db
from appbase_backend.interface.base import OkResponse
from appbase_backend.interface.user_roles import UserRoleCreate, UserRoleGet
from appbase_backend.permissions.guard import get_current_principal, requires_permission, with_permission
from appbase_backend.permissions.management import db_assign_role, db_get_user_roles, db_remove_role
from appbase_backend.permissions.principal import Principal

user_roles_router = APIRouter()

@user_roles_router.get("/users/{user_id}/roles", response_model=List[UserRoleGet])
def list_user_roles(
    user_id: str,
    principal: Annotated[Principal, Depends(requires_permission("user:read"))],
    db: Session = Depends(get_db)
):
    return [UserRoleGet.model_validate(entity) for entity in db_get_user_roles(user_id, db)]

@user_roles_router.post("/users/{user_id}/roles", response_model=UserRoleGet, status_code=status.HTTP_201_CREATED)
@with_permission("user:assign_roles")
def create_user_role(
    user_id: str,
    entity: UserRoleCreate,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Session = Depends(get_db)
):
    user_role = db_assign_role(user_id, entity.role_id, db, created_by=principal.user_id)
    return UserRoleGet.model_validate(user_role)

@user_roles_router.delete("/users/{user_id}/roles/{role_id}", response_model=OkResponse)
@with_permission("user:assign_roles")
def delete_user_role(
    user_id: str,
    role_id: str,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Session = Depends(get_db)
):
    db_remove_role(user_id, role_id, db)
    return OkResponse()
