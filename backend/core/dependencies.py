"""
Identity: turns a bearer token into a Principal {id, role}.
No storage access here; profile state (blocked, verified) is checked by services.
"""
from typing import Optional, Protocol

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

from core.security import read_access_token
from core.exceptions import credentials_exception, forbidden_exception
from models.common import UserRole

bearer_scheme = HTTPBearer(auto_error=False)


class Principal(BaseModel):
    id:   str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class IdentityProvider(Protocol):
    def resolve(self, token: str) -> Optional[Principal]:
        ...


class JWTIdentityProvider:
    """Resolves access tokens signed by core.security."""

    def resolve(self, token: str) -> Optional[Principal]:
        payload = read_access_token(token)
        if not payload:
            return None
        user_id = payload.get("sub")
        role = payload.get("role")
        if not user_id or role not in [r.value for r in UserRole]:
            return None
        return Principal(id=user_id, role=UserRole(role))


_default_provider = JWTIdentityProvider()


def get_identity_provider() -> IdentityProvider:
    return _default_provider


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Principal:
    if not credentials:
        raise credentials_exception()
    principal = provider.resolve(credentials.credentials)
    if principal is None:
        raise credentials_exception()
    return principal


def require_role(*roles: UserRole):
    """
    Dependency that checks the caller holds one of the given roles.
    Usage: Depends(require_role(UserRole.ADMIN))
    """
    async def _check(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise forbidden_exception()
        return principal
    return _check


def ensure_self_or_admin(principal: Principal, user_id: str) -> None:
    if not principal.is_admin and principal.id != user_id:
        raise forbidden_exception()


# Shortcuts
require_admin = require_role(UserRole.ADMIN)
require_mitra = require_role(UserRole.MITRA, UserRole.ADMIN)
