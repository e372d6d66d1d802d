"""JWT Token Issuance and Validation"""
import jwt
from typing import Any, Dict, Optional

from ..config.settings import settings
from ..domain.enums import UserRole
from ..domain.errors import AuthenticationError
from ..domain.models import ActorContext
from .time import utc_now, add_days
from .logger import get_logger

logger = get_logger(__name__)


class JWTValidator:
    """HS256 token signer/validator bound to the configured secret"""

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None):
        self._secret = secret or settings.jwt_secret
        self._algorithm = algorithm or settings.jwt_algorithm

    def create_token(
        self,
        user_id: str,
        role: UserRole,
        expires_in_days: Optional[int] = None
    ) -> str:
        """Sign a token carrying the user ID and role"""
        now = utc_now()
        payload: Dict[str, Any] = {
            "user_id": user_id,
            "role": UserRole(role).value,
            "iat": now,
            "exp": add_days(now, expires_in_days or settings.jwt_expires_days),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Validate a bearer token

        Args:
            token: Bearer token (with or without 'Bearer ' prefix)

        Returns:
            Decoded token claims

        Raises:
            AuthenticationError: If token is invalid
        """
        if not token:
            raise AuthenticationError("Token is missing")

        if token.startswith("Bearer "):
            token = token[7:]

        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "user_id", "role"]}
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            raise AuthenticationError("Token has expired")
        except jwt.PyJWTError as e:
            logger.warning(f"JWT validation error: {e}")
            raise AuthenticationError("Invalid token")

    def get_actor_context(self, token: str) -> ActorContext:
        """Extract actor context from validated token"""
        claims = self.validate_token(token)

        try:
            role = UserRole(claims["role"])
        except ValueError:
            raise AuthenticationError("Invalid token role")

        return ActorContext(
            user_id=str(claims["user_id"]),
            role=role
        )


# Global validator instance
_jwt_validator: Optional[JWTValidator] = None


def get_jwt_validator() -> JWTValidator:
    """Get global JWT validator instance"""
    global _jwt_validator
    if _jwt_validator is None:
        _jwt_validator = JWTValidator()
    return _jwt_validator


def create_access_token(user_id: str, role: UserRole) -> str:
    """Issue a token for a user"""
    return get_jwt_validator().create_token(user_id, role)


def get_current_user(authorization: str) -> ActorContext:
    """
    Get current user from authorization header

    Args:
        authorization: Authorization header value

    Returns:
        ActorContext
    """
    if not authorization:
        raise AuthenticationError("Authorization header is missing")
    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Authorization header must use the Bearer scheme")

    return get_jwt_validator().get_actor_context(authorization)
