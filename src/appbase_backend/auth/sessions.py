"""
Server-side session records.

A session is Active while its row exists and ``now < expires``. Once the expiry
has passed it is Expired: still stored, but every validation fails. Deleting
the row revokes it. Expiry is checked lazily; nothing runs on a timer.
"""

import logging
import re
import secrets
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional
from sqlalchemy.orm import Session as DBSession

from appbase_backend.model.auth import Session
from appbase_backend.settings import settings
from appbase_backend.utils import ensure_utc, short_token, utc_now

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    active = "active"
    expired = "expired"
    revoked = "revoked"


def generate_session_token() -> str:
    return secrets.token_urlsafe(32)


def get_session_expiry(max_age: Optional[timedelta] = None, now: Optional[datetime] = None) -> datetime:
    max_age = max_age or timedelta(days=settings.SESSION_MAX_AGE_DAYS)
    return (now or utc_now()) + max_age


def create_session(
    user_id: str,
    db: DBSession,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    max_age: Optional[timedelta] = None,
    commit: bool = True,
) -> Session:

    session = Session(
        session_token=generate_session_token(),
        user_id=user_id,
        expires=get_session_expiry(max_age),
        ip_address=ip_address,
        user_agent=user_agent,
    )

    db.add(session)

    if commit:
        db.commit()
        db.refresh(session)
    else:
        db.flush()

    logger.debug(f"Created session {short_token(session.session_token)} for user {user_id}")
    return session


def get_session(session_token: str, db: DBSession) -> Optional[Session]:
    if not session_token:
        return None
    return db.query(Session).filter(Session.session_token == session_token).first()


def session_state(session: Optional[Session], now: Optional[datetime] = None) -> SessionState:
    if session is None:
        return SessionState.revoked
    if (now or utc_now()) >= ensure_utc(session.expires):
        return SessionState.expired
    return SessionState.active


def validate_session(session_token: str, db: DBSession, purge_expired: bool = False) -> Optional[Session]:
    """Return the session when it is Active, otherwise None.

    With ``purge_expired`` an expired row found here is deleted on the spot.
    """
    session = get_session(session_token, db)
    state = session_state(session)

    if state == SessionState.active:
        return session

    if state == SessionState.expired and purge_expired:
        logger.info(f"Purging expired session {short_token(session_token)}")
        db.delete(session)
        db.commit()

    return None


def is_session_valid(session_token: str, db: DBSession) -> bool:
    return validate_session(session_token, db) is not None


def delete_session(session_token: str, db: DBSession) -> bool:
    """Revoke one session. Returns False if there was nothing to delete."""

    deleted = (
        db.query(Session)
        .filter(Session.session_token == session_token)
        .delete(synchronize_session=False)
    )
    db.commit()

    return deleted > 0


def delete_all_user_sessions(user_id: str, db: DBSession, commit: bool = True) -> int:
    """Revoke every session of a user.

    Pass ``commit=False`` to make the deletion part of a larger transaction.
    """
    deleted = (
        db.query(Session)
        .filter(Session.user_id == user_id)
        .delete(synchronize_session=False)
    )

    if commit:
        db.commit()

    return deleted


def delete_other_user_sessions(user_id: str, keep_session_token: str, db: DBSession) -> int:

    deleted = (
        db.query(Session)
        .filter(Session.user_id == user_id, Session.session_token != keep_session_token)
        .delete(synchronize_session=False)
    )
    db.commit()

    return deleted


def get_user_sessions(user_id: str, db: DBSession, include_expired: bool = False) -> List[Session]:

    query = db.query(Session).filter(Session.user_id == user_id)

    if not include_expired:
        query = query.filter(Session.expires > utc_now())

    return query.order_by(Session.created_at.desc()).all()


def count_active_sessions(user_id: str, db: DBSession) -> int:
    return (
        db.query(Session)
        .filter(Session.user_id == user_id, Session.expires > utc_now())
        .count()
    )


def clean_expired_sessions(db: DBSession) -> int:
    """Maintenance sweep. Removes every session whose expiry has passed."""

    deleted = (
        db.query(Session)
        .filter(Session.expires < utc_now())
        .delete(synchronize_session=False)
    )
    db.commit()

    logger.info(f"Removed {deleted} expired session(s)")
    return deleted


# Order matters: Edge and Opera UAs also contain "Chrome", Chrome contains "Safari".
_BROWSERS = [
    ("Edge", re.compile(r"Edg(e|A|iOS)?/")),
    ("Opera", re.compile(r"OPR/|Opera")),
    ("Firefox", re.compile(r"Firefox/|FxiOS/")),
    ("Chrome", re.compile(r"Chrome/|CriOS/")),
    ("Safari", re.compile(r"Safari/")),
]

_OPERATING_SYSTEMS = [
    ("Windows", re.compile(r"Windows")),
    ("iOS", re.compile(r"iPhone|iPad|iPod")),
    ("macOS", re.compile(r"Mac OS X|Macintosh")),
    ("Android", re.compile(r"Android")),
    ("Linux", re.compile(r"Linux")),
]


def parse_user_agent(user_agent: Optional[str]) -> Dict[str, str]:
    """Summarize a user-agent string as browser, operating system and device class."""

    if not user_agent or user_agent == "unknown":
        return {"browser": "Unknown", "os": "Unknown", "device": "Desktop"}

    browser = next((name for name, pattern in _BROWSERS if pattern.search(user_agent)), "Unknown")
    os_name = next((name for name, pattern in _OPERATING_SYSTEMS if pattern.search(user_agent)), "Unknown")

    if re.search(r"iPad|Tablet", user_agent):
        device = "Tablet"
    elif re.search(r"Mobile|iPhone|Android", user_agent):
        device = "Mobile"
    else:
        device = "Desktop"

    return {"browser": browser, "os": os_name, "device": device}
