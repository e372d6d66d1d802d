"""API Dependencies - Common dependencies for routes"""
from typing import Callable, Optional
from fastapi import Depends, Header

from ..domain.models import ActorContext
from ..domain.enums import UserRole
from ..domain.errors import AuthenticationError, PermissionDeniedError
from ..utils.jwt import get_current_user as _jwt_get_current_user  # Internal use only


async def get_current_user_dep(
    authorization: Optional[str] = Header(None)
) -> ActorContext:
    """
    Dependency to get current user from Authorization header

    Validates the bearer JWT and extracts user ID and role.

    Raises:
        AuthenticationError: 401 if token is invalid or missing
    """
    if not authorization:
        raise AuthenticationError("No token provided")

    return _jwt_get_current_user(authorization)


def require_roles(*roles: UserRole) -> Callable:
    """
    Dependency factory restricting a route to the given roles

    Usage:
        actor: ActorContext = Depends(require_roles(UserRole.ADMIN))
    """
    async def _require_roles(actor: ActorContext = Depends(get_current_user_dep)) -> ActorContext:
        if not actor.has_role(*roles):
            raise PermissionDeniedError(
                "Forbidden: insufficient role",
                details={"required": [r.value for r in roles], "role": actor.role.value}
            )
        return actor

    return _require_roles
