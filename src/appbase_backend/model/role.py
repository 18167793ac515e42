from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from .base import Base, generate_uuid, utc_now


class Role(Base):
    __tablename__ = 'role'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(50), unique=True, nullable=False)
    description = Column(String(4096))
    created_at = Column(DateTime(True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(True), nullable=False, default=utc_now, onupdate=utc_now)

    # Relationships
    role_permissions = relationship('RolePermission', back_populates='role', cascade='all, delete-orphan')
    # no cascade: deleting a role that users still hold is refused
    user_roles = relationship('UserRole', back_populates='role')


class Permission(Base):
    __tablename__ = 'permission'

    id = Column(String(100), primary_key=True)
    module = Column(String(50), nullable=False, index=True)
    description = Column(String(4096))
    created_at = Column(DateTime(True), nullable=False, default=utc_now)

    role_permissions = relationship('RolePermission', back_populates='permission', cascade='all, delete-orphan')


class RolePermission(Base):
    __tablename__ = 'role_permission'

    role_id = Column(ForeignKey('role.id', ondelete='CASCADE'), primary_key=True, nullable=False)
    permission_id = Column(ForeignKey('permission.id', ondelete='CASCADE', onupdate='CASCADE'), primary_key=True, nullable=False)
    created_at = Column(DateTime(True), nullable=False, default=utc_now)

    role = relationship('Role', back_populates='role_permissions')
    permission = relationship('Permission', back_populates='role_permissions')


class UserRole(Base):
    __tablename__ = 'user_role'

    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), primary_key=True, nullable=False)
    role_id = Column(ForeignKey('role.id', ondelete='RESTRICT', onupdate='CASCADE'), primary_key=True, nullable=False)
    created_at = Column(DateTime(True), nullable=False, default=utc_now)
    created_by = Column(ForeignKey('user.id', ondelete='SET NULL'))

    role = relationship('Role', back_populates='user_roles')
    user = relationship('User', back_populates='user_roles', foreign_keys=[user_id])
