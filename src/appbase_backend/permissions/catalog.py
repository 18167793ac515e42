"""
Seeded permission catalog.

Permission ids are the only stable contract across versions: renaming one is a
breaking migration.
"""

import logging
from typing import List, NamedTuple, Optional
from sqlalchemy.orm import Session

from appbase_backend.auth.credentials import hash_password
from appbase_backend.database import atomic
from appbase_backend.model.auth import User, UserCredentials
from appbase_backend.model.role import Permission, Role, RolePermission, UserRole

logger = logging.getLogger(__name__)

SYSTEM_ADMIN = "system:admin"
ADMIN_ROLE_NAME = "admin"


class PermissionDefinition(NamedTuple):
    id: str
    module: str
    description: str


CRUD_ACTIONS = {
    "create": "Create {module}s",
    "read": "View {module} details",
    "update": "Edit {module}s",
    "delete": "Delete {module}s",
    "list": "List {module}s",
    "manage": "Full management of {module}s",
}


def _crud(module: str) -> List[PermissionDefinition]:
    return [
        PermissionDefinition(f"{module}:{action}", module, description.format(module=module))
        for action, description in CRUD_ACTIONS.items()
    ]


PERMISSION_CATALOG: List[PermissionDefinition] = [
    *_crud("user"),
    PermissionDefinition("user:assign_roles", "user", "Assign and remove user roles"),
    *_crud("role"),
    PermissionDefinition("role:assign_permissions", "role", "Assign and remove role permissions"),
    PermissionDefinition("permission:read", "permission", "View permission details"),
    PermissionDefinition("permission:list", "permission", "List permissions"),
    PermissionDefinition("permission:manage", "permission", "Full management of permissions"),
    PermissionDefinition(SYSTEM_ADMIN, "system", "Unrestricted system administration"),
]


def sync_permission_catalog(db: Session) -> int:
    """Insert missing catalog permissions and refresh existing ones. Returns the number inserted."""

    existing = {p.id: p for p in db.query(Permission).all()}
    inserted = 0

    with atomic(db):
        for definition in PERMISSION_CATALOG:
            permission = existing.get(definition.id)
            if permission is None:
                db.add(Permission(id=definition.id, module=definition.module, description=definition.description))
                inserted += 1
            else:
                permission.module = definition.module
                permission.description = definition.description

    logger.info(f"Permission catalog synced ({inserted} new, {len(PERMISSION_CATALOG)} total)")
    return inserted


def ensure_admin_role(db: Session) -> Role:
    """Create the admin role if missing and grant it every catalog permission."""

    role = db.query(Role).filter(Role.name == ADMIN_ROLE_NAME).first()

    with atomic(db):
        if role is None:
            role = Role(name=ADMIN_ROLE_NAME, description="System administrator")
            db.add(role)
            db.flush()

        granted = {rp.permission_id for rp in role.role_permissions}
        for permission_id, in db.query(Permission.id).all():
            if permission_id not in granted:
                db.add(RolePermission(role_id=role.id, permission_id=permission_id))

    db.refresh(role)
    return role


def bootstrap_admin_user(db: Session, email: Optional[str], password: Optional[str]) -> Optional[User]:
    """Create the administrator account once. No-op when email exists or config is missing."""

    if not email or not password:
        logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set, skipping admin bootstrap")
        return None

    email = email.strip().lower()

    if db.query(User).filter(User.email == email).first() is not None:
        return None

    role = ensure_admin_role(db)

    with atomic(db):
        admin = User(email=email, name="Admin System", first_name="Admin", last_name="System")
        db.add(admin)
        db.flush()
        db.add(UserCredentials(user_id=admin.id, hashed_password=hash_password(password)))
        db.add(UserRole(user_id=admin.id, role_id=role.id))

    logger.info(f"Bootstrapped admin user {admin.id}")
    return admin
