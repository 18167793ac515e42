import logging
from functools import lru_cache
from typing import Optional

import bcrypt

from appbase_backend.errors import WeakPasswordError
from appbase_backend.settings import settings

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    rounds = rounds or settings.BCRYPT_ROUNDS
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed_password: Optional[str]) -> bool:
    """Compare a plaintext password against a stored bcrypt hash.

    Never raises: a missing, corrupt or foreign-format hash is simply a mismatch.
    """
    if not password or not hashed_password:
        return False

    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except (ValueError, TypeError):
        logger.warning("Stored password hash could not be parsed")
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("appbase-timing-equalizer")


def burn_verification_time(password: str) -> None:
    """Spend the same time as a real check when there is no hash to compare against."""
    verify_password(password or "x", _dummy_hash())


def validate_new_password(password: str, min_length: Optional[int] = None) -> None:

    min_length = min_length or settings.PASSWORD_MIN_LENGTH

    if password is None or len(password) < min_length:
        raise WeakPasswordError(f"Password must be at least {min_length} characters long")

    if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
        raise WeakPasswordError(f"Password must not exceed {BCRYPT_MAX_PASSWORD_BYTES} bytes")
