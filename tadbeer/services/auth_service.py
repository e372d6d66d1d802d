"""Auth Service - Registration, login and token issue"""
from typing import Tuple

from ..domain.models import ActorContext, User
from ..domain.enums import UserRole, UserStatus
from ..domain.errors import InvalidCredentialsError
from ..repositories.user_repo import UserRepository
from ..utils.jwt import create_access_token
from ..utils.passwords import verify_password
from ..utils.logger import get_logger
from .user_service import UserService

logger = get_logger(__name__)


class AuthService:
    """Service for authentication"""

    def __init__(self):
        self.repo = UserRepository()
        self.users = UserService()

    def register(self, name: str, email: str, password: str, role: UserRole = UserRole.USER) -> Tuple[str, User]:
        """Create an available account and return (token, user)"""
        user = self.users.build_user(
            name=name,
            email=email,
            password=password,
            role=role,
            status=UserStatus.AVAILABLE
        )
        self.repo.create_user(user)
        logger.info(f"Registered user {user.user_id}", extra={"user_id": user.user_id, "role": user.role.value})
        return create_access_token(user.user_id, user.role), user

    def login(self, email: str, password: str) -> Tuple[str, User]:
        user = self.repo.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning("Rejected login attempt")
            raise InvalidCredentialsError("Invalid credentials")
        return create_access_token(user.user_id, user.role), user

    def me(self, actor: ActorContext) -> User:
        return self.repo.get_user_or_raise(actor.user_id)
