"""User Service - Account management"""
from typing import Any, Dict, List, Optional

from ..domain.models import ActorContext, User
from ..domain.enums import UserRole, UserStatus
from ..domain.errors import PermissionDeniedError, ValidationError
from ..engine.permission_guard import PermissionGuard
from ..repositories.user_repo import UserRepository
from ..repositories.department_repo import DepartmentRepository
from ..utils.idgen import generate_user_id
from ..utils.passwords import hash_password
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


# What a user may change on their own profile
SELF_EDITABLE_FIELDS = ("name", "phone")

ADMIN_EDITABLE_FIELDS = (
    "name", "email", "role", "status", "department", "department_id",
    "phone", "avatar", "expertise",
)

NULLABLE_FIELDS = ("department", "department_id", "phone", "avatar")


class UserService:
    """Service for user operations"""

    def __init__(self):
        self.repo = UserRepository()
        self.department_repo = DepartmentRepository()
        self.guard = PermissionGuard()

    def _department_name(self, department_id: Optional[str]) -> Optional[str]:
        """Resolve the denormalized department name, rejecting unknown IDs"""
        if not department_id:
            return None
        department = self.department_repo.get_department(department_id)
        if not department:
            raise ValidationError("Department not found", details={"department_id": department_id})
        return department.name

    def build_user(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
        status: UserStatus = UserStatus.OFFLINE,
        **profile: Any
    ) -> User:
        """New, unsaved user with a hashed password"""
        now = utc_now()
        return User(
            user_id=generate_user_id(),
            name=name.strip(),
            email=email.strip().lower(),
            password_hash=hash_password(password),
            role=role,
            status=status,
            created_at=now,
            updated_at=now,
            **{k: v for k, v in profile.items() if v is not None}
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def list_users(self, actor: ActorContext) -> List[User]:
        if not actor.has_role(UserRole.ADMIN):
            raise PermissionDeniedError("Admin access required")
        return self.repo.list_users()

    def list_department_employees(self, actor: ActorContext, department_id: Optional[str] = None) -> List[User]:
        """
        Agents and plain users of a department, by name.

        Managers always see their own department; admins must name one.
        """
        if actor.has_role(UserRole.MANAGER):
            me = self.repo.get_user_or_raise(actor.user_id)
            department_id = me.department_id
        elif not actor.has_role(UserRole.ADMIN):
            raise PermissionDeniedError("Manager or admin access required")

        if not department_id:
            raise ValidationError("department_id is required")

        return self.repo.list_department_members(department_id, [UserRole.AGENT, UserRole.USER])

    def get_user(self, actor: ActorContext, user_id: str) -> User:
        target = self.repo.get_user_or_raise(user_id)
        actor_user = self.repo.get_user(actor.user_id) if actor.has_role(UserRole.MANAGER) else None
        if not self.guard.can_view_user(actor, actor_user, target):
            raise PermissionDeniedError("Not authorized to view this user")
        return target

    # =========================================================================
    # Mutations
    # =========================================================================

    def create_user(self, actor: ActorContext, data: Dict[str, Any]) -> User:
        """Admin-created account (409 when the email is taken)"""
        if not actor.has_role(UserRole.ADMIN):
            raise PermissionDeniedError("Admin access required")

        profile = {k: v for k, v in data.items() if k in ADMIN_EDITABLE_FIELDS}
        if profile.get("department_id"):
            profile["department"] = self._department_name(profile["department_id"])

        user = self.build_user(password=data["password"], **profile)
        self.repo.create_user(user)
        logger.info(
            f"User {user.user_id} created by {actor.user_id}",
            extra={"user_id": user.user_id, "role": user.role.value, "action": "create"}
        )
        return user

    def update_user(self, actor: ActorContext, user_id: str, updates: Dict[str, Any]) -> User:
        """Admins may edit any profile; everyone else only their own name and phone"""
        self.repo.get_user_or_raise(user_id)

        if actor.has_role(UserRole.ADMIN):
            changes = {k: v for k, v in updates.items() if k in ADMIN_EDITABLE_FIELDS}
            if "email" in changes and changes["email"]:
                changes["email"] = changes["email"].strip().lower()
            if "department_id" in changes:
                changes["department"] = self._department_name(changes["department_id"])
            if updates.get("password"):
                changes["password_hash"] = hash_password(updates["password"])
        elif actor.user_id == user_id:
            changes = {k: v for k, v in updates.items() if k in SELF_EDITABLE_FIELDS}
        else:
            raise PermissionDeniedError("Not authorized to update this user")

        changes = {k: v for k, v in changes.items() if v is not None or k in NULLABLE_FIELDS}
        if not changes:
            return self.repo.get_user_or_raise(user_id)

        return self.repo.update_user(user_id, changes)

    def delete_user(self, actor: ActorContext, user_id: str) -> None:
        if not actor.has_role(UserRole.ADMIN):
            raise PermissionDeniedError("Admin access required")
        if not self.repo.delete_user(user_id):
            self.repo.get_user_or_raise(user_id)
        logger.info(f"User {user_id} deleted by {actor.user_id}", extra={"user_id": user_id, "action": "delete"})
