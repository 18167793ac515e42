from typing import Iterable, List, Optional
from pydantic import BaseModel, Field

from appbase_backend.interface.auth import TokenClaims
from appbase_backend.interface.permissions import PermissionCheckResult
from appbase_backend.permissions.core import check_all_permissions, check_any_permission, check_permission


class Principal(BaseModel):
    """Identity resolved from a validated session token.

    ``permissions`` is the login-time snapshot. ``permitted`` and friends only
    answer UX questions; enforcement goes through the guard.
    """

    user_id: str
    email: str
    name: Optional[str] = None
    session_token: str
    permissions: List[str] = Field(default_factory=list)
    claims: Optional[TokenClaims] = None

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "Principal":
        return cls(
            user_id=claims.id,
            email=claims.email,
            name=claims.name,
            session_token=claims.session_token,
            permissions=list(claims.permissions),
            claims=claims,
        )

    def permitted(self, permission_id: str) -> bool:
        return check_permission(self.permissions, permission_id)

    def permitted_any(self, permission_ids: Iterable[str]) -> bool:
        return check_any_permission(self.permissions, permission_ids)

    def permitted_all(self, permission_ids: Iterable[str]) -> PermissionCheckResult:
        return check_all_permissions(self.permissions, permission_ids)
