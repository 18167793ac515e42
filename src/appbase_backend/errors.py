"""
Domain exceptions raised by the authorization and session core.

They carry no HTTP semantics. ``appbase_backend.api.exceptions`` translates
them at the API boundary.
"""

from typing import List, Optional


class AuthError(Exception):
    """Base class for all domain errors"""

    message = "Authorization error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class InvalidCredentialsError(AuthError):
    """Wrong email or password. Always generic, never field-specific."""

    message = "Invalid credentials"

    def __init__(self):
        super().__init__(InvalidCredentialsError.message)


class UnauthenticatedError(AuthError):
    message = "Not authenticated"


class PermissionDeniedError(AuthError):
    """Authenticated, but lacking one or more required permissions."""

    message = "Permission denied"

    def __init__(self, required: List[str], missing: Optional[List[str]] = None):
        self.required = list(required)
        self.missing = list(missing) if missing else None
        super().__init__()


class InvalidOrExpiredResetTokenError(AuthError):

    INVALID = "invalid"
    EXPIRED = "expired"

    def __init__(self, reason: str = INVALID):
        self.reason = reason
        if reason == self.EXPIRED:
            super().__init__("Password reset token has expired")
        else:
            super().__init__("Password reset token is invalid")


class StoreError(AuthError):
    """Persistence failure. Details are logged, never shown to callers."""

    message = "Internal server error"


class WeakPasswordError(AuthError):
    message = "Password does not meet the requirements"


class ConflictError(AuthError):
    message = "Conflict"


class EntityNotFoundError(AuthError):
    message = "Not found"


class RoleInUseError(AuthError):

    def __init__(self, role_name: str, user_count: int):
        self.role_name = role_name
        self.user_count = user_count
        super().__init__(f"Role '{role_name}' is assigned to {user_count} user(s) and cannot be deleted")


class SessionOperationError(AuthError):
    message = "Session operation not allowed"


class RateLimitedError(AuthError):
    message = "Too many requests, try again later"
