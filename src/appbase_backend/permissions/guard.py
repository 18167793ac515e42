"""
Authorization guard for protected operations.

Identity comes from the signed token (``Authorization: Bearer`` header or the
session cookie) and is only accepted while the session row it names is active.
Permission requirements are always re-checked against the store; the token's
permission snapshot is never used for enforcement.

Three equivalent ways to protect an operation:

* call ``require_permission(principal, "user:create", db)`` inline;
* declare ``Depends(requires_permission("user:create"))`` on a route;
* decorate the callable with ``@with_permission("user:create")``.
"""

import functools
import inspect
import logging
from typing import Annotated, Callable, Iterable, Optional, Union
from fastapi import Depends, Request
from fastapi.security.utils import get_authorization_scheme_param
from sqlalchemy.orm import Session

from appbase_backend.auth.sessions import validate_session
from appbase_backend.auth.tokens import decode_token
from appbase_backend.database import get_db
from appbase_backend.errors import PermissionDeniedError, UnauthenticatedError
from appbase_backend.permissions.catalog import SYSTEM_ADMIN
from appbase_backend.permissions.principal import Principal
from appbase_backend.permissions.queries import (
    db_user_has_all_permissions,
    db_user_has_any_permission,
    db_user_has_permission,
)
from appbase_backend.settings import settings
from appbase_backend.utils import short_token

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------------
# Identity resolution
# ----------------------------------------------------------------------------

def extract_token(request: Request) -> Optional[str]:
    """Signed token from the Authorization header, else from the session cookie."""

    authorization = request.headers.get("Authorization")
    if authorization:
        scheme, param = get_authorization_scheme_param(authorization)
        if scheme.lower() != "bearer" or not param:
            raise UnauthenticatedError("Invalid authorization format")
        return param

    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def authenticate_token(token: Optional[str], db: Session) -> Principal:
    """Decode a signed token and make sure its session is still active."""

    claims = decode_token(token)

    session = validate_session(claims.session_token, db, purge_expired=True)
    if session is None:
        logger.info(f"Rejected token for user {claims.id}: session {short_token(claims.session_token)} is not active")
        raise UnauthenticatedError("Session expired or revoked")

    if session.user_id != claims.id:
        logger.warning(f"Session {short_token(claims.session_token)} does not belong to token subject {claims.id}")
        raise UnauthenticatedError("Session expired or revoked")

    return Principal.from_claims(claims)


async def get_current_principal(request: Request, db: Session = Depends(get_db)) -> Principal:
    """Main dependency for getting the current authenticated principal."""
    return authenticate_token(extract_token(request), db)


async def get_optional_principal(request: Request, db: Session = Depends(get_db)) -> Optional[Principal]:
    try:
        return authenticate_token(extract_token(request), db)
    except UnauthenticatedError:
        return None


# ----------------------------------------------------------------------------
# Imperative checks
# ----------------------------------------------------------------------------

def require_auth(principal: Optional[Principal]) -> str:
    if principal is None or not principal.user_id:
        raise UnauthenticatedError()
    return principal.user_id


def require_permission(principal: Optional[Principal], permission_id: str, db: Session) -> str:
    user_id = require_auth(principal)

    if not db_user_has_permission(user_id, permission_id, db):
        logger.info(f"User {user_id} denied: needs {permission_id}")
        raise PermissionDeniedError(required=[permission_id])

    return user_id


def require_any_permission(principal: Optional[Principal], permission_ids: Iterable[str], db: Session) -> str:
    user_id = require_auth(principal)
    permission_ids = list(permission_ids)

    if not db_user_has_any_permission(user_id, permission_ids, db):
        logger.info(f"User {user_id} denied: needs any of {permission_ids}")
        raise PermissionDeniedError(required=permission_ids)

    return user_id


def require_all_permissions(principal: Optional[Principal], permission_ids: Iterable[str], db: Session) -> str:
    user_id = require_auth(principal)
    permission_ids = list(permission_ids)

    result = db_user_has_all_permissions(user_id, permission_ids, db)
    if not result.has_permission:
        logger.info(f"User {user_id} denied: missing {result.missing_permissions}")
        raise PermissionDeniedError(required=permission_ids, missing=result.missing_permissions)

    return user_id


def require_admin(principal: Optional[Principal], db: Session) -> str:
    return require_permission(principal, SYSTEM_ADMIN, db)


# ----------------------------------------------------------------------------
# FastAPI dependency factories
# ----------------------------------------------------------------------------

def requires_permission(*permission_ids: str, require_all: bool = True) -> Callable:
    """Route dependency that resolves the principal and checks ``permission_ids``."""

    def dependency(
        principal: Annotated[Principal, Depends(get_current_principal)],
        db: Session = Depends(get_db),
    ) -> Principal:
        _check(principal, permission_ids, db, require_all)
        return principal

    return dependency


def requires_any_permission(*permission_ids: str) -> Callable:
    return requires_permission(*permission_ids, require_all=False)


def requires_admin() -> Callable:
    return requires_permission(SYSTEM_ADMIN)


# ----------------------------------------------------------------------------
# Decorators
# ----------------------------------------------------------------------------

def _check(principal, permission_ids, db, require_all: bool):
    if len(permission_ids) == 1:
        return require_permission(principal, permission_ids[0], db)
    if require_all:
        return require_all_permissions(principal, permission_ids, db)
    return require_any_permission(principal, permission_ids, db)


def _guard(check: Callable[[Optional[Principal], Optional[Session]], None], needs_db: bool = True):

    def decorator(func):
        signature = inspect.signature(func)

        def run_check(args, kwargs):
            arguments = signature.bind_partial(*args, **kwargs).arguments
            db = arguments.get("db")
            if needs_db and db is None:
                raise TypeError(f"{func.__qualname__}() needs a 'db' session to check permissions")
            check(arguments.get("principal"), db)

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                run_check(args, kwargs)
                return await func(*args, **kwargs)
            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            run_check(args, kwargs)
            return func(*args, **kwargs)
        return wrapper

    return decorator


def with_auth(func):
    """Reject calls whose ``principal`` argument is missing."""
    return _guard(lambda principal, db: require_auth(principal), needs_db=False)(func)


def with_permission(permission_ids: Union[str, Iterable[str]], require_all: bool = True):
    """Guard a callable that takes ``principal`` and ``db`` arguments.

    They may be passed by position or keyword. The wrapped signature is
    preserved, so FastAPI still injects dependencies when the decorator sits
    under a route decorator.
    """

    if isinstance(permission_ids, str):
        permission_ids = [permission_ids]
    permission_ids = tuple(permission_ids)

    return _guard(lambda principal, db: _check(principal, permission_ids, db, require_all))


def with_admin(func):
    return _guard(lambda principal, db: require_admin(principal, db))(func)
