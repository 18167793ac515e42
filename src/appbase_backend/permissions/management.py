"""
Role, role-permission and user-role mutations.

Each function is one store transaction. Duplicate associations are rejected
rather than silently duplicated, and a role cannot be deleted while users hold it.
"""

import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from appbase_backend.database import atomic
from appbase_backend.errors import ConflictError, EntityNotFoundError, RoleInUseError
from appbase_backend.model.auth import User
from appbase_backend.model.role import Permission, Role, RolePermission, UserRole

logger = logging.getLogger(__name__)


def db_get_role(role_id: str, db: Session) -> Role:
    role = db.query(Role).filter(Role.id == role_id).first()
    if role is None:
        raise EntityNotFoundError(f"Role {role_id} not found")
    return role


def db_list_roles(db: Session, name: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[Role]:
    query = db.query(Role)
    if name is not None:
        query = query.filter(Role.name.ilike(f"%{name}%"))
    return query.order_by(Role.name).offset(skip).limit(limit).all()


def db_create_role(name: str, db: Session, description: Optional[str] = None) -> Role:

    if db.query(Role).filter(Role.name == name).first() is not None:
        raise ConflictError(f"Role '{name}' already exists")

    role = Role(name=name, description=description)

    with atomic(db):
        db.add(role)

    db.refresh(role)
    logger.info(f"Created role {role.name} ({role.id})")
    return role


def db_delete_role(role_id: str, db: Session) -> None:
    """Delete a role and its permission grants. Refused while any user holds it."""

    role = db_get_role(role_id, db)

    user_count = db.query(UserRole).filter(UserRole.role_id == role.id).count()
    if user_count > 0:
        raise RoleInUseError(role.name, user_count)

    with atomic(db):
        db.delete(role)

    logger.info(f"Deleted role {role.name} ({role_id})")


def db_assign_permission_to_role(role_id: str, permission_id: str, db: Session) -> RolePermission:

    role = db_get_role(role_id, db)

    if db.query(Permission).filter(Permission.id == permission_id).first() is None:
        raise EntityNotFoundError(f"Permission {permission_id} not found")

    existing = (
        db.query(RolePermission)
        .filter(RolePermission.role_id == role.id, RolePermission.permission_id == permission_id)
        .first()
    )
    if existing is not None:
        raise ConflictError(f"Role '{role.name}' already has permission {permission_id}")

    role_permission = RolePermission(role_id=role.id, permission_id=permission_id)

    with atomic(db):
        db.add(role_permission)

    return role_permission


def db_remove_permission_from_role(role_id: str, permission_id: str, db: Session) -> None:

    role_permission = (
        db.query(RolePermission)
        .filter(RolePermission.role_id == role_id, RolePermission.permission_id == permission_id)
        .first()
    )
    if role_permission is None:
        raise EntityNotFoundError(f"Permission {permission_id} is not assigned to role {role_id}")

    with atomic(db):
        db.delete(role_permission)


def db_get_role_permission_ids(role_id: str, db: Session) -> List[str]:
    db_get_role(role_id, db)
    results = (
        db.query(RolePermission.permission_id)
        .filter(RolePermission.role_id == role_id)
        .order_by(RolePermission.permission_id)
        .all()
    )
    return [permission_id for (permission_id,) in results]


def db_get_user_roles(user_id: str, db: Session) -> List[UserRole]:

    if db.query(User.id).filter(User.id == user_id).first() is None:
        raise EntityNotFoundError(f"User {user_id} not found")

    return (
        db.query(UserRole)
        .filter(UserRole.user_id == user_id)
        .order_by(UserRole.created_at)
        .all()
    )


def db_assign_role(user_id: str, role_id: str, db: Session, created_by: Optional[str] = None) -> UserRole:
    """Give a role to a user. Assigning a role the user already holds raises ConflictError."""

    if db.query(User.id).filter(User.id == user_id).first() is None:
        raise EntityNotFoundError(f"User {user_id} not found")

    role = db_get_role(role_id, db)

    existing = (
        db.query(UserRole)
        .filter(UserRole.user_id == user_id, UserRole.role_id == role.id)
        .first()
    )
    if existing is not None:
        raise ConflictError(f"User already has role '{role.name}'")

    user_role = UserRole(user_id=user_id, role_id=role.id, created_by=created_by)

    with atomic(db):
        db.add(user_role)

    db.refresh(user_role)
    logger.info(f"Assigned role {role.name} to user {user_id} (by {created_by})")
    return user_role


def db_remove_role(user_id: str, role_id: str, db: Session) -> None:

    user_role = (
        db.query(UserRole)
        .filter(UserRole.user_id == user_id, UserRole.role_id == role_id)
        .first()
    )
    if user_role is None:
        raise EntityNotFoundError(f"Role {role_id} is not assigned to user {user_id}")

    with atomic(db):
        db.delete(user_role)

    logger.info(f"Removed role {role_id} from user {user_id}")
