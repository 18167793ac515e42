"""
Permission evaluator.

Two families of checks live here:

* server-trusted checks (``has_*``, ``get_permissions``) that always query the
  store through ``permissions.queries``;
* client-trusted checks (``check_*``) that work on an already materialized
  permission list, typically the snapshot decoded from a signed token.

The client-trusted variants are for UX gating only. The snapshot may be stale
relative to the store, so every state-changing operation must be guarded with
a server-trusted check.
"""

from typing import Iterable, List
from sqlalchemy.orm import Session

from appbase_backend.interface.permissions import PermissionCheckResult
from appbase_backend.permissions.queries import (
    db_get_user_permissions,
    db_user_has_all_permissions,
    db_user_has_any_permission,
    db_user_has_permission,
)


# ----------------------------------------------------------------------------
# Server-trusted
# ----------------------------------------------------------------------------

def has_permission(user_id: str, permission_id: str, db: Session) -> bool:
    return db_user_has_permission(user_id, permission_id, db)


def has_any_permission(user_id: str, permission_ids: Iterable[str], db: Session) -> bool:
    return db_user_has_any_permission(user_id, permission_ids, db)


def has_all_permissions(user_id: str, permission_ids: Iterable[str], db: Session) -> PermissionCheckResult:
    return db_user_has_all_permissions(user_id, permission_ids, db)


def has_permissions(user_id: str, permission_ids: Iterable[str], db: Session, require_all: bool = True) -> bool:
    if require_all:
        return has_all_permissions(user_id, permission_ids, db).has_permission
    return has_any_permission(user_id, permission_ids, db)


def get_permissions(user_id: str, db: Session) -> List[str]:
    return sorted(db_get_user_permissions(user_id, db))


# ----------------------------------------------------------------------------
# Client-trusted (UX only)
# ----------------------------------------------------------------------------

def check_permission(known_permissions: Iterable[str], permission_id: str) -> bool:
    """Exact, case-sensitive membership. No wildcard or module matching."""
    return permission_id in set(known_permissions or [])


def check_any_permission(known_permissions: Iterable[str], permission_ids: Iterable[str]) -> bool:
    known = set(known_permissions or [])
    return any(permission_id in known for permission_id in permission_ids)


def check_all_permissions(known_permissions: Iterable[str], permission_ids: Iterable[str]) -> PermissionCheckResult:
    known = set(known_permissions or [])
    requested = list(dict.fromkeys(permission_ids))

    if not requested:
        return PermissionCheckResult(has_permission=True)

    missing = [permission_id for permission_id in requested if permission_id not in known]

    return PermissionCheckResult(has_permission=not missing, missing_permissions=missing or None)
