from collections import defaultdict
from typing import Annotated, List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from appbase_backend.database import get_db
from appbase_backend.interface.permissions import PermissionGet, PermissionQuery, PermissionsByModule
from appbase_backend.permissions.guard import requires_permission
from appbase_backend.permissions.principal import Principal
from appbase_backend.permissions.queries import db_get_all_permissions, db_get_permissions_by_module

permissions_router = APIRouter()

@permissions_router.get("", response_model=List[PermissionGet])
def list_permissions(
    principal: Annotated[Principal, Depends(requires_permission("permission:list"))],
    params: PermissionQuery = Depends(),
    db: Session = Depends(get_db)
):
    if params.module is not None:
        permissions = db_get_permissions_by_module(params.module, db)
    else:
        permissions = db_get_all_permissions(db)

    return [PermissionGet.model_validate(p) for p in permissions]

@permissions_router.get("/modules", response_model=PermissionsByModule)
def list_permissions_by_module(
    principal: Annotated[Principal, Depends(requires_permission("permission:list"))],
    db: Session = Depends(get_db)
):
    modules = defaultdict(list)
    for permission in db_get_all_permissions(db):
        modules[permission.module].append(PermissionGet.model_validate(permission))

    return PermissionsByModule(modules=dict(modules))
