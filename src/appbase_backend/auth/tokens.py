import logging
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from pydantic import ValidationError

from appbase_backend.errors import UnauthenticatedError
from appbase_backend.interface.auth import TokenClaims
from appbase_backend.settings import settings
from appbase_backend.utils import utc_now

logger = logging.getLogger(__name__)

if settings.uses_default_secret:
    logger.warning("AUTH_SECRET is not set, signed tokens use the development secret")


def encode_token(claims: TokenClaims, expires: Optional[datetime] = None, secret: Optional[str] = None) -> str:
    """Sign ``claims`` into a compact token that expires with its session."""

    now = utc_now()
    expires = expires or now + timedelta(days=settings.SESSION_MAX_AGE_DAYS)

    payload = claims.model_dump(mode="json", by_alias=True)
    payload["sub"] = claims.id
    payload["iat"] = int(now.timestamp())
    payload["exp"] = int(expires.timestamp())

    return jwt.encode(payload, secret or settings.AUTH_SECRET, algorithm=settings.AUTH_ALGORITHM)


def decode_token(token: str, secret: Optional[str] = None) -> TokenClaims:
    """Verify signature and expiry, then return the claims. Raises UnauthenticatedError otherwise."""

    if not token:
        raise UnauthenticatedError()

    try:
        payload = jwt.decode(token, secret or settings.AUTH_SECRET, algorithms=[settings.AUTH_ALGORITHM])
    except JWTError as e:
        logger.info(f"Rejected signed token: {e}")
        raise UnauthenticatedError("Invalid or expired token") from e

    try:
        return TokenClaims.model_validate(payload)
    except ValidationError as e:
        logger.info("Signed token carries malformed claims")
        raise UnauthenticatedError("Invalid or expired token") from e
