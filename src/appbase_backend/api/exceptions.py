from typing import Any, Dict, Optional
from fastapi import HTTPException, status

from appbase_backend.errors import (
    AuthError,
    ConflictError,
    EntityNotFoundError,
    InvalidCredentialsError,
    InvalidOrExpiredResetTokenError,
    PermissionDeniedError,
    RateLimitedError,
    RoleInUseError,
    SessionOperationError,
    UnauthenticatedError,
    WeakPasswordError,
)

class NotFoundException(HTTPException):
    def __init__(self, detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_404_NOT_FOUND, detail or "Not found", headers)

class ForbiddenException(HTTPException):
    def __init__(self, detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_403_FORBIDDEN, detail or "Forbidden", headers)

class BadRequestException(HTTPException):
    def __init__(self, detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail or "Bad request", headers)

class UnauthorizedException(HTTPException):
    def __init__(self, detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_401_UNAUTHORIZED, detail or "Unauthorized", headers or {"WWW-Authenticate": "Bearer"})

class ConflictException(HTTPException):
    def __init__(self, detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_409_CONFLICT, detail or "Conflict", headers)

class TooManyRequestsException(HTTPException):
    def __init__(self, detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_429_TOO_MANY_REQUESTS, detail or "Too many requests", headers)

class InternalServerException(HTTPException):
    def __init__(self, detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, detail or "Internal server error", headers)

def auth_error_to_http_exception(error: AuthError) -> HTTPException:
    """Translate a domain error into the HTTP exception returned to the caller."""

    if isinstance(error, (InvalidCredentialsError, UnauthenticatedError)):
        return UnauthorizedException(detail=error.message)
    elif isinstance(error, PermissionDeniedError):
        detail = {"message": error.message, "required": error.required}
        if error.missing:
            detail["missing"] = error.missing
        return ForbiddenException(detail=detail)
    elif isinstance(error, InvalidOrExpiredResetTokenError):
        return BadRequestException(detail={"message": error.message, "reason": error.reason})
    elif isinstance(error, (WeakPasswordError, RoleInUseError, SessionOperationError)):
        return BadRequestException(detail=error.message)
    elif isinstance(error, ConflictError):
        return ConflictException(detail=error.message)
    elif isinstance(error, EntityNotFoundError):
        return NotFoundException(detail=error.message)
    elif isinstance(error, RateLimitedError):
        return TooManyRequestsException(detail=error.message)
    else:
        return InternalServerException()
