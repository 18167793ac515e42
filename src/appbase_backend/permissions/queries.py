"""
Permission query layer.

Every function reads straight from the store through the
User -> UserRole -> Role -> RolePermission -> Permission path. Nothing is cached,
so a role change is visible to the next query on a fresh transaction.

Store errors are never converted into a negative answer; they propagate to the
caller.
"""

from collections import OrderedDict
from typing import Dict, Iterable, List, Set
from sqlalchemy.orm import Session

from appbase_backend.interface.permissions import PermissionCheckResult
from appbase_backend.model.auth import User
from appbase_backend.model.role import Permission, Role, RolePermission, UserRole


def _user_permission_query(user_id: str, db: Session):
    return (
        db.query(RolePermission.permission_id)
        .select_from(User)
        .join(UserRole, UserRole.user_id == User.id)
        .join(Role, Role.id == UserRole.role_id)
        .join(RolePermission, RolePermission.role_id == Role.id)
        .filter(User.id == user_id)
    )


def _dedupe(permission_ids: Iterable[str]) -> List[str]:
    return list(OrderedDict.fromkeys(permission_ids))


def db_get_user_permissions(user_id: str, db: Session) -> Set[str]:
    """Effective permission set of a user.

    An unknown user and a user without roles both yield the empty set.
    """
    results = _user_permission_query(user_id, db).distinct().all()
    return {permission_id for (permission_id,) in results}


def db_user_has_permission(user_id: str, permission_id: str, db: Session) -> bool:
    query = _user_permission_query(user_id, db).filter(RolePermission.permission_id == permission_id)
    return bool(db.query(query.exists()).scalar())


def db_user_has_any_permission(user_id: str, permission_ids: Iterable[str], db: Session) -> bool:
    """True iff at least one of ``permission_ids`` is held.

    An empty requirement list is never satisfied and does not touch the store.
    """
    permission_ids = _dedupe(permission_ids)

    if not permission_ids:
        return False

    query = _user_permission_query(user_id, db).filter(RolePermission.permission_id.in_(permission_ids))
    return bool(db.query(query.exists()).scalar())


def db_user_has_all_permissions(user_id: str, permission_ids: Iterable[str], db: Session) -> PermissionCheckResult:
    """Check that every id in ``permission_ids`` is held.

    An empty requirement list is vacuously satisfied and does not touch the
    store. On failure ``missing_permissions`` keeps the requested order.
    """
    permission_ids = _dedupe(permission_ids)

    if not permission_ids:
        return PermissionCheckResult(has_permission=True)

    results = (
        _user_permission_query(user_id, db)
        .filter(RolePermission.permission_id.in_(permission_ids))
        .distinct()
        .all()
    )
    held = {permission_id for (permission_id,) in results}

    missing = [permission_id for permission_id in permission_ids if permission_id not in held]

    if missing:
        return PermissionCheckResult(has_permission=False, missing_permissions=missing)

    return PermissionCheckResult(has_permission=True)


def db_get_user_permissions_detailed(user_id: str, db: Session) -> List[Permission]:
    return (
        db.query(Permission)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .join(UserRole, UserRole.role_id == RolePermission.role_id)
        .filter(UserRole.user_id == user_id)
        .distinct()
        .order_by(Permission.module, Permission.id)
        .all()
    )


def db_get_user_roles_with_permissions(user_id: str, db: Session) -> List[Dict]:
    roles = (
        db.query(Role)
        .join(UserRole, UserRole.role_id == Role.id)
        .filter(UserRole.user_id == user_id)
        .order_by(Role.name)
        .all()
    )

    return [
        {
            "id": role.id,
            "name": role.name,
            "description": role.description,
            "permissions": sorted(rp.permission_id for rp in role.role_permissions),
        }
        for role in roles
    ]


def db_get_all_permissions(db: Session) -> List[Permission]:
    return db.query(Permission).order_by(Permission.module, Permission.id).all()


def db_get_permissions_by_module(module: str, db: Session) -> List[Permission]:
    return db.query(Permission).filter(Permission.module == module).order_by(Permission.id).all()


def db_permission_exists(permission_id: str, db: Session) -> bool:
    return bool(db.query(db.query(Permission).filter(Permission.id == permission_id).exists()).scalar())
