import logging
from typing import Annotated
from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response, status
from sqlalchemy.orm import Session

from appbase_backend.auth.rate_limiter import RateLimiter
from appbase_backend.auth.service import AuthService
from appbase_backend.auth.tokens import decode_token
from appbase_backend.database import get_db
from appbase_backend.errors import UnauthenticatedError
from appbase_backend.interface.auth import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    OriginMetadata,
    PasswordChange,
    PasswordResetComplete,
    PasswordResetRequest,
)
from appbase_backend.interface.base import OkResponse
from appbase_backend.interface.sessions import SessionsRevoked
from appbase_backend.interface.users import UserGet, UserRegister
from appbase_backend.permissions.core import get_permissions
from appbase_backend.permissions.guard import extract_token, get_current_principal
from appbase_backend.permissions.principal import Principal
from appbase_backend.redis_cache import get_cache_client
from appbase_backend.settings import settings

logger = logging.getLogger(__name__)

auth_router = APIRouter()

PASSWORD_RESET_REQUESTED_MESSAGE = "If the email is registered, a password reset link has been sent"


def get_origin_metadata(request: Request) -> OriginMetadata:
    """Client IP and user-agent, preferring proxy headers."""

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        ip_address = forwarded_for.split(",")[0].strip()
    else:
        ip_address = request.headers.get("x-real-ip")

    if not ip_address and request.client is not None:
        ip_address = request.client.host

    return OriginMetadata(
        ip_address=ip_address or "unknown",
        user_agent=request.headers.get("user-agent") or "unknown",
    )


async def get_reset_rate_limiter() -> RateLimiter:
    return RateLimiter(
        await get_cache_client(),
        namespace="password-reset",
        limit=settings.RESET_RATE_LIMIT,
        window_seconds=settings.RESET_RATE_WINDOW_SECONDS,
    )


def _set_session_cookie(response: Response, token: str, max_age: int):
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=max_age,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


@auth_router.post("/register", response_model=UserGet, status_code=status.HTTP_201_CREATED)
def register(data: UserRegister, db: Session = Depends(get_db)):
    return UserGet.model_validate(AuthService(db).register(data))


@auth_router.post("/login", response_model=LoginResponse)
def login(
    credentials: LoginRequest,
    response: Response,
    origin: Annotated[OriginMetadata, Depends(get_origin_metadata)],
    db: Session = Depends(get_db),
):
    result = AuthService(db).login(credentials.email, credentials.password, origin)

    _set_session_cookie(response, result.token, max_age=settings.SESSION_MAX_AGE_DAYS * 24 * 3600)

    return LoginResponse(token=result.token, expires=result.expires, user=result.claims)


@auth_router.post("/logout", response_model=OkResponse)
def logout(request: Request, response: Response, db: Session = Depends(get_db)):
    """Revoke the caller's session. Succeeds even without a valid token."""

    session_token = None
    try:
        token = extract_token(request)
        if token:
            session_token = decode_token(token).session_token
    except UnauthenticatedError:
        logger.info("Logout called with an unusable token")

    AuthService(db).logout(session_token)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)

    return OkResponse()


@auth_router.get("/me", response_model=MeResponse)
def me(principal: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):
    return MeResponse(user=principal.claims, permissions=get_permissions(principal.user_id, db))


@auth_router.post("/password-reset/request", response_model=OkResponse)
async def request_password_reset(
    data: PasswordResetRequest,
    background_tasks: BackgroundTasks,
    origin: Annotated[OriginMetadata, Depends(get_origin_metadata)],
    limiter: Annotated[RateLimiter, Depends(get_reset_rate_limiter)],
    db: Session = Depends(get_db),
):
    await limiter.check(origin.ip_address)

    service = AuthService(db)
    delivery = service.request_password_reset(data.email)

    # delivery runs after the response is sent
    if delivery is not None:
        background_tasks.add_task(service.deliver_password_reset, delivery)

    return OkResponse(message=PASSWORD_RESET_REQUESTED_MESSAGE)


@auth_router.get("/password-reset/validate", response_model=OkResponse)
def validate_password_reset_token(token: str, db: Session = Depends(get_db)):
    AuthService(db).validate_password_reset_token(token)
    return OkResponse()


@auth_router.post("/password-reset/complete", response_model=OkResponse)
def complete_password_reset(data: PasswordResetComplete, db: Session = Depends(get_db)):
    AuthService(db).complete_password_reset(data.token, data.password)
    return OkResponse(message="Password updated, please sign in again")


@auth_router.post("/password", response_model=SessionsRevoked)
def change_password(
    data: PasswordChange,
    principal: Annotated[Principal, Depends(get_current_principal)],
    response: Response,
    db: Session = Depends(get_db),
):
    revoked = AuthService(db).change_password(principal.user_id, data.current_password, data.new_password)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)

    return SessionsRevoked(revoked=revoked)
