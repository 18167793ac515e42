"""
Hybrid authentication orchestrator.

A successful login produces two things that must exist together:

* a server-side ``Session`` row, which is the revocable, authoritative record;
* a signed token embedding the user's identity, a permission snapshot and the
  session token, which is what the client presents.

The guard only accepts a signed token whose session row is still active, so
deleting rows (logout, password reset, password change) cuts every device off
on its next request.
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta
from typing import List, Optional
from urllib.parse import urlencode
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from appbase_backend.auth.credentials import (
    burn_verification_time,
    hash_password,
    validate_new_password,
    verify_password,
)
from appbase_backend.auth.sessions import (
    count_active_sessions,
    create_session,
    delete_all_user_sessions,
    delete_other_user_sessions,
    delete_session,
    get_session,
    get_user_sessions,
    parse_user_agent,
)
from appbase_backend.auth.tokens import encode_token
from appbase_backend.database import atomic
from appbase_backend.errors import (
    ConflictError,
    EntityNotFoundError,
    InvalidCredentialsError,
    InvalidOrExpiredResetTokenError,
    SessionOperationError,
    StoreError,
)
from appbase_backend.interface.auth import OriginMetadata, TokenClaims
from appbase_backend.interface.sessions import SessionInfo
from appbase_backend.interface.users import UserRegister
from appbase_backend.model.auth import PasswordResetToken, Session, User, UserCredentials
from appbase_backend.notifications import EmailService, get_email_service
from appbase_backend.permissions.core import get_permissions
from appbase_backend.settings import settings
from appbase_backend.utils import ensure_utc, short_token, utc_now

logger = logging.getLogger(__name__)

PASSWORD_RESET_PATH = "/reset-password"


class LoginResult(BaseModel):
    token: str
    claims: TokenClaims
    expires: datetime


class PasswordResetDelivery(BaseModel):
    user_id: str
    email: str
    reset_link: str
    ttl_minutes: int


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def generate_reset_token() -> str:
    return secrets.token_hex(32)


def hash_reset_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def build_reset_link(raw_token: str, app_url: Optional[str] = None) -> str:
    return f"{app_url or settings.APP_URL}{PASSWORD_RESET_PATH}?{urlencode({'token': raw_token})}"


def build_token_claims(user: User, permissions: List[str], session_token: str) -> TokenClaims:
    return TokenClaims(
        id=user.id,
        email=user.email,
        name=user.display_name or None,
        first_name=user.first_name,
        last_name=user.last_name,
        email_verified=user.email_verified,
        permissions=permissions,
        session_token=session_token,
    )


class AuthService:
    """Login, logout, registration, password reset and session management for one request."""

    def __init__(self, db: DBSession, email_service: Optional[EmailService] = None):
        self.db = db
        self._email_service = email_service

    @property
    def email_service(self) -> EmailService:
        return self._email_service or get_email_service()

    # ------------------------------------------------------------------
    # Registration and login
    # ------------------------------------------------------------------

    def register(self, data: UserRegister) -> User:

        email = normalize_email(data.email)
        validate_new_password(data.password)

        if self.db.query(User.id).filter(User.email == email).first() is not None:
            raise ConflictError("Email is already registered")

        hashed_password = hash_password(data.password)

        with atomic(self.db):
            user = User(
                email=email,
                first_name=data.first_name,
                last_name=data.last_name,
                name=f"{data.first_name} {data.last_name}",
            )
            self.db.add(user)
            self.db.flush()
            self.db.add(UserCredentials(user_id=user.id, hashed_password=hashed_password))

        self.db.refresh(user)
        logger.info(f"Registered user {user.id}")
        return user

    def authenticate(self, email: str, password: str) -> User:
        """Verify credentials. Every failure raises the same generic InvalidCredentialsError."""

        user = self.db.query(User).filter(User.email == normalize_email(email)).first()

        if user is None:
            burn_verification_time(password)
            logger.info("Login failed: unknown email")
            raise InvalidCredentialsError()

        if user.credentials is None:
            burn_verification_time(password)
            logger.info(f"Login failed for user {user.id}: no credentials")
            raise InvalidCredentialsError()

        if not verify_password(password, user.credentials.hashed_password):
            logger.info(f"Login failed for user {user.id}: wrong password")
            raise InvalidCredentialsError()

        return user

    def login(self, email: str, password: str, origin: Optional[OriginMetadata] = None) -> LoginResult:

        origin = origin or OriginMetadata()
        user = self.authenticate(email, password)

        permissions = get_permissions(user.id, self.db)

        try:
            session = create_session(
                user.id,
                self.db,
                ip_address=origin.ip_address,
                user_agent=origin.user_agent,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Could not create session for user {user.id}")
            raise StoreError() from e

        claims = build_token_claims(user, permissions, session.session_token)
        expires = ensure_utc(session.expires)
        token = encode_token(claims, expires=expires)

        logger.info(f"User {user.id} logged in, session {short_token(session.session_token)} from {origin.ip_address}")
        return LoginResult(token=token, claims=claims, expires=expires)

    def logout(self, session_token: Optional[str]) -> None:
        """Revoke the session behind a token. Idempotent and never fails the caller."""

        if not session_token:
            return

        try:
            deleted = delete_session(session_token, self.db)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Could not delete session {short_token(session_token)} during logout")
            return

        if not deleted:
            logger.warning(f"Logout for unknown or already revoked session {short_token(session_token)}")
        else:
            logger.info(f"Session {short_token(session_token)} logged out")

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------

    def request_password_reset(self, email: str) -> Optional[PasswordResetDelivery]:
        """Issue a reset token for a known email.

        Returns the email to send, or None when the email is unknown. Delivery
        happens outside the request through ``deliver_password_reset`` so both
        outcomes answer in the same time.
        """

        user = self.db.query(User).filter(User.email == normalize_email(email)).first()

        if user is None:
            logger.info("Password reset requested for unknown email")
            return None

        raw_token = generate_reset_token()
        ttl_minutes = settings.PASSWORD_RESET_TTL_MINUTES

        with atomic(self.db):
            self.db.add(
                PasswordResetToken(
                    user_id=user.id,
                    token=hash_reset_token(raw_token),
                    expires_at=utc_now() + timedelta(minutes=ttl_minutes),
                )
            )

        logger.info(f"Password reset issued for user {user.id}")
        return PasswordResetDelivery(
            user_id=user.id,
            email=user.email,
            reset_link=build_reset_link(raw_token),
            ttl_minutes=ttl_minutes,
        )

    async def deliver_password_reset(self, delivery: PasswordResetDelivery) -> bool:
        """Send the reset email. A failed delivery is logged, never raised."""

        try:
            await self.email_service.send_password_reset_email(
                delivery.email, delivery.reset_link, delivery.ttl_minutes,
            )
        except Exception:
            logger.exception(f"Password reset email for user {delivery.user_id} could not be delivered")
            return False

        logger.info(f"Password reset email sent to user {delivery.user_id}")
        return True

    def validate_password_reset_token(self, raw_token: str) -> PasswordResetToken:
        """Look up a reset token. An expired one is deleted before the error is raised."""

        if not raw_token:
            raise InvalidOrExpiredResetTokenError(InvalidOrExpiredResetTokenError.INVALID)

        record = (
            self.db.query(PasswordResetToken)
            .filter(PasswordResetToken.token == hash_reset_token(raw_token))
            .first()
        )

        if record is None:
            raise InvalidOrExpiredResetTokenError(InvalidOrExpiredResetTokenError.INVALID)

        if utc_now() >= ensure_utc(record.expires_at):
            user_id = record.user_id
            with atomic(self.db):
                self.db.delete(record)
            logger.info(f"Deleted expired password reset token of user {user_id}")
            raise InvalidOrExpiredResetTokenError(InvalidOrExpiredResetTokenError.EXPIRED)

        return record

    def complete_password_reset(self, raw_token: str, new_password: str) -> int:
        """Set a new password and revoke every session of the user.

        The credential update, the token consumption and the session deletion
        commit together or not at all. Returns the number of revoked sessions.
        """

        validate_new_password(new_password)
        record = self.validate_password_reset_token(raw_token)
        user_id = record.user_id
        hashed_password = hash_password(new_password)

        with atomic(self.db):
            consumed = (
                self.db.query(PasswordResetToken)
                .filter(PasswordResetToken.id == record.id)
                .delete(synchronize_session=False)
            )
            if consumed == 0:
                # lost a race with another consumer of the same token
                raise InvalidOrExpiredResetTokenError(InvalidOrExpiredResetTokenError.INVALID)

            self._set_credentials(user_id, hashed_password)
            revoked = delete_all_user_sessions(user_id, self.db, commit=False)

        self.db.expire_all()
        logger.info(f"Password reset completed for user {user_id}, {revoked} session(s) revoked")
        return revoked

    def change_password(self, user_id: str, current_password: str, new_password: str) -> int:
        """Rotate the password of a signed-in user and revoke all of their sessions."""

        credentials = self.db.query(UserCredentials).filter(UserCredentials.user_id == user_id).first()

        if credentials is None or not verify_password(current_password, credentials.hashed_password):
            raise InvalidCredentialsError()

        validate_new_password(new_password)
        hashed_password = hash_password(new_password)

        with atomic(self.db):
            credentials.hashed_password = hashed_password
            revoked = delete_all_user_sessions(user_id, self.db, commit=False)

        self.db.expire_all()
        logger.info(f"Password changed for user {user_id}, {revoked} session(s) revoked")
        return revoked

    def _set_credentials(self, user_id: str, hashed_password: str) -> None:
        credentials = self.db.query(UserCredentials).filter(UserCredentials.user_id == user_id).first()
        if credentials is None:
            self.db.add(UserCredentials(user_id=user_id, hashed_password=hashed_password))
        else:
            credentials.hashed_password = hashed_password

    # ------------------------------------------------------------------
    # Session management for the signed-in user
    # ------------------------------------------------------------------

    def list_sessions(self, user_id: str, current_session_token: Optional[str] = None) -> List[SessionInfo]:

        sessions = get_user_sessions(user_id, self.db)

        infos = [self._session_info(session, current_session_token) for session in sessions]
        # current session first, the rest stay newest first
        infos.sort(key=lambda info: not info.is_current)

        return infos

    def revoke_session(self, user_id: str, current_session_token: str, target_session_token: str) -> None:

        if target_session_token == current_session_token:
            raise SessionOperationError("The current session can only be ended by logging out")

        session = get_session(target_session_token, self.db)
        if session is None or session.user_id != user_id:
            raise EntityNotFoundError("Session not found")

        delete_session(target_session_token, self.db)
        logger.info(f"User {user_id} revoked session {short_token(target_session_token)}")

    def revoke_other_sessions(self, user_id: str, current_session_token: str) -> int:
        revoked = delete_other_user_sessions(user_id, current_session_token, self.db)
        logger.info(f"User {user_id} revoked {revoked} other session(s)")
        return revoked

    def revoke_all_sessions(self, user_id: str) -> int:
        revoked = delete_all_user_sessions(user_id, self.db)
        logger.info(f"User {user_id} revoked all {revoked} session(s)")
        return revoked

    def count_active_sessions(self, user_id: str) -> int:
        return count_active_sessions(user_id, self.db)

    @staticmethod
    def _session_info(session: Session, current_session_token: Optional[str]) -> SessionInfo:
        return SessionInfo(
            session_token=session.session_token,
            created_at=ensure_utc(session.created_at),
            expires=ensure_utc(session.expires),
            ip_address=session.ip_address,
            user_agent=session.user_agent,
            is_current=session.session_token == current_session_token,
            **parse_user_agent(session.user_agent),
        )
