from typing import Annotated, List
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from appbase_backend.database import get_db
from appbase_backend.interface.base import OkResponse
from appbase_backend.interface.permissions import RolePermissionAssign
from appbase_backend.interface.roles import RoleCreate, RoleGet, RoleList, RoleQuery, RoleWithPermissions
from appbase_backend.model.role import Role
from appbase_backend.permissions.guard import get_current_principal, requires_permission, with_permission
from appbase_backend.permissions.management import (
    db_assign_permission_to_role,
    db_create_role,
    db_delete_role,
    db_get_role,
    db_get_role_permission_ids,
    db_list_roles,
    db_remove_permission_from_role,
)
from appbase_backend.permissions.principal import Principal

roles_router = APIRouter()

@roles_router.get("", response_model=List[RoleList])
def list_roles(
    principal: Annotated[Principal, Depends(requires_permission("role:list"))],
    response: Response,
    params: RoleQuery = Depends(),
    db: Session = Depends(get_db)
):
    roles = db_list_roles(db, name=params.name, skip=params.skip, limit=params.limit)
    response.headers["X-Total-Count"] = str(db.query(Role).count())
    return [RoleList.model_validate(role) for role in roles]

@roles_router.post("", response_model=RoleGet, status_code=status.HTTP_201_CREATED)
def create_role(
    entity: RoleCreate,
    principal: Annotated[Principal, Depends(requires_permission("role:create"))],
    db: Session = Depends(get_db)
):
    return RoleGet.model_validate(db_create_role(entity.name, db, description=entity.description))

@roles_router.get("/{role_id}", response_model=RoleWithPermissions)
def get_role(
    role_id: str,
    principal: Annotated[Principal, Depends(requires_permission("role:read"))],
    db: Session = Depends(get_db)
):
    role = db_get_role(role_id, db)
    return RoleWithPermissions(
        id=role.id,
        name=role.name,
        description=role.description,
        permissions=db_get_role_permission_ids(role.id, db)
    )

@roles_router.delete("/{role_id}", response_model=OkResponse)
@with_permission("role:delete")
def delete_role(
    role_id: str,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Session = Depends(get_db)
):
    db_delete_role(role_id, db)
    return OkResponse()

@roles_router.get("/{role_id}/permissions", response_model=List[str])
def list_role_permissions(
    role_id: str,
    principal: Annotated[Principal, Depends(requires_permission("role:read"))],
    db: Session = Depends(get_db)
):
    return db_get_role_permission_ids(role_id, db)

@roles_router.post("/{role_id}/permissions", response_model=OkResponse, status_code=status.HTTP_201_CREATED)
@with_permission("role:assign_permissions")
def assign_role_permission(
    role_id: str,
    entity: RolePermissionAssign,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Session = Depends(get_db)
):
    db_assign_permission_to_role(role_id, entity.permission_id, db)
    return OkResponse()

@roles_router.delete("/{role_id}/permissions/{permission_id}", response_model=OkResponse)
@with_permission("role:assign_permissions")
def remove_role_permission(
    role_id: str,
    permission_id: str,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Session = Depends(get_db)
):
    db_remove_permission_from_role(role_id, permission_id, db)
    return OkResponse()
