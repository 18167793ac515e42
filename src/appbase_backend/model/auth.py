from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from .base import Base, generate_uuid, utc_now


class User(Base):
    __tablename__ = 'user'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255))
    email = Column(String(320), unique=True, nullable=False)
    email_verified = Column(DateTime(True))
    image = Column(String(2048))
    first_name = Column(String(255))
    last_name = Column(String(255))
    created_at = Column(DateTime(True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(True), nullable=False, default=utc_now, onupdate=utc_now)

    # Relationships
    credentials = relationship("UserCredentials", back_populates="user", uselist=False, cascade="all, delete-orphan", lazy="select")
    sessions = relationship("Session", back_populates="user", uselist=True, cascade="all, delete-orphan", lazy="select")
    user_roles = relationship("UserRole", back_populates="user", foreign_keys="UserRole.user_id", uselist=True, cascade="all, delete-orphan", lazy="select")
    reset_tokens = relationship("PasswordResetToken", back_populates="user", uselist=True, cascade="all, delete-orphan", lazy="select")

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        return " ".join(p for p in (self.first_name, self.last_name) if p)


class UserCredentials(Base):
    __tablename__ = 'user_credentials'

    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), primary_key=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    updated_at = Column(DateTime(True), nullable=False, default=utc_now, onupdate=utc_now)

    user = relationship('User', back_populates='credentials')


class Session(Base):
    __tablename__ = 'session'

    session_token = Column(String(255), primary_key=True)
    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    expires = Column(DateTime(True), nullable=False, index=True)
    created_at = Column(DateTime(True), nullable=False, default=utc_now)
    ip_address = Column(String(45))
    user_agent = Column(String(1024))

    user = relationship('User', back_populates='sessions')


class PasswordResetToken(Base):
    __tablename__ = 'password_reset_token'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    # sha256 hex of the raw token
    token = Column(String(64), unique=True, nullable=False)
    expires_at = Column(DateTime(True), nullable=False)
    created_at = Column(DateTime(True), nullable=False, default=utc_now)

    user = relationship('User', back_populates='reset_tokens')
