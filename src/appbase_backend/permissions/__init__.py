"""
RBAC authorization for the appbase backend.

Main components:
- queries: effective-permission queries over user -> role -> permission
- core: server-trusted and client-trusted (snapshot) evaluators
- principal: identity resolved from a signed session token
- guard: require_* checks, route dependencies and decorators
- management: role, role-permission and user-role mutations
- catalog: the seeded permission catalog and admin bootstrap
"""

from .queries import (
    db_get_user_permissions,
    db_user_has_permission,
    db_user_has_any_permission,
    db_user_has_all_permissions,
    db_get_user_permissions_detailed,
    db_get_user_roles_with_permissions,
    db_get_all_permissions,
    db_get_permissions_by_module,
    db_permission_exists,
)

from .core import (
    has_permission,
    has_any_permission,
    has_all_permissions,
    has_permissions,
    get_permissions,
    check_permission,
    check_any_permission,
    check_all_permissions,
)

from .principal import Principal

from .guard import (
    get_current_principal,
    get_optional_principal,
    require_auth,
    require_permission,
    require_any_permission,
    require_all_permissions,
    require_admin,
    requires_permission,
    requires_any_permission,
    requires_admin,
    with_auth,
    with_permission,
    with_admin,
)

from .catalog import SYSTEM_ADMIN, PERMISSION_CATALOG
