from .base import Base, metadata
from .auth import User, UserCredentials, Session, PasswordResetToken
from .role import Role, Permission, RolePermission, UserRole

# Import all models to ensure relationships are properly set up
from . import auth, role

__all__ = [
    'Base',
    'metadata',
    # Auth models
    'User',
    'UserCredentials',
    'Session',
    'PasswordResetToken',
    # Role/Permission models
    'Role',
    'Permission',
    'RolePermission',
    'UserRole',
]
