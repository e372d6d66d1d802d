"""User Repository - Data access for helpdesk accounts"""
from typing import Any, Dict, Iterable, List, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from .mongo_client import get_collection
from ..domain.models import User
from ..domain.enums import UserRole
from ..domain.errors import AlreadyExistsError, UserNotFoundError
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


class UserRepository:
    """Repository for user operations"""

    COLLECTION_NAME = "users"

    def __init__(self):
        self._users: Collection = get_collection(self.COLLECTION_NAME)

    @staticmethod
    def _to_model(doc: Dict[str, Any]) -> User:
        doc.pop("_id", None)
        return User.model_validate(doc)

    def create_user(self, user: User) -> User:
        """Insert a new user; email uniqueness is enforced by the index"""
        doc = user.model_dump()
        doc["_id"] = user.user_id

        try:
            self._users.insert_one(doc)
        except DuplicateKeyError:
            raise AlreadyExistsError("Email already exists", details={"email": user.email})

        logger.info(f"Created user: {user.user_id}", extra={"user_id": user.user_id, "role": user.role.value})
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        """Get user by ID"""
        doc = self._users.find_one({"user_id": user_id})
        return self._to_model(doc) if doc else None

    def get_user_or_raise(self, user_id: str) -> User:
        """Get user by ID or raise error"""
        user = self.get_user(user_id)
        if not user:
            raise UserNotFoundError("User not found", details={"user_id": user_id})
        return user

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by (case-insensitive) email"""
        doc = self._users.find_one({"email": email.strip().lower()})
        return self._to_model(doc) if doc else None

    def exists(self, user_id: str) -> bool:
        return self._users.find_one({"user_id": user_id}, {"_id": 1}) is not None

    def get_users_by_ids(self, user_ids: Iterable[Optional[str]]) -> Dict[str, User]:
        """Fetch several users at once, keyed by ID"""
        ids = sorted({uid for uid in user_ids if uid})
        if not ids:
            return {}
        return {
            doc["user_id"]: self._to_model(doc)
            for doc in self._users.find({"user_id": {"$in": ids}})
        }

    def list_users(self) -> List[User]:
        """All users, newest first"""
        cursor = self._users.find({}).sort("created_at", DESCENDING)
        return [self._to_model(doc) for doc in cursor]

    def list_department_members(self, department_id: str, roles: List[UserRole]) -> List[User]:
        """Users of a department with one of the given roles, by name"""
        cursor = self._users.find({
            "department_id": department_id,
            "role": {"$in": [r.value for r in roles]}
        }).sort("name", ASCENDING)
        return [self._to_model(doc) for doc in cursor]

    def update_user(self, user_id: str, updates: Dict[str, Any]) -> User:
        """Apply field updates to a user and return the new state"""
        try:
            result = self._users.find_one_and_update(
                {"user_id": user_id},
                {"$set": {**updates, "updated_at": utc_now()}},
                return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise AlreadyExistsError("Email already exists", details={"email": updates.get("email")})

        if result is None:
            raise UserNotFoundError("User not found", details={"user_id": user_id})

        logger.info(f"Updated user: {user_id}", extra={"user_id": user_id})
        return self._to_model(result)

    def delete_user(self, user_id: str) -> bool:
        """Hard-delete a user. Returns True if deleted."""
        result = self._users.delete_one({"user_id": user_id})
        return result.deleted_count > 0

    def rename_department(self, department_id: str, name: str) -> int:
        """Propagate a department rename to its members"""
        result = self._users.update_many(
            {"department_id": department_id},
            {"$set": {"department": name, "updated_at": utc_now()}}
        )
        return result.modified_count

    def unlink_department(self, department_id: str) -> int:
        """Detach every user from a department"""
        result = self._users.update_many(
            {"department_id": department_id},
            {"$set": {"department_id": None, "department": None, "updated_at": utc_now()}}
        )
        return result.modified_count
