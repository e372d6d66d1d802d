"""Department Repository - Data access for departments"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from .mongo_client import get_collection
from ..domain.models import Department
from ..domain.errors import AlreadyExistsError, DepartmentNotFoundError
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


class DepartmentRepository:
    """Repository for department operations"""

    COLLECTION_NAME = "departments"

    def __init__(self):
        self._departments: Collection = get_collection(self.COLLECTION_NAME)

    @staticmethod
    def _to_model(doc: Dict[str, Any]) -> Department:
        doc.pop("_id", None)
        return Department.model_validate(doc)

    def create_department(self, department: Department) -> Department:
        """Insert a department; names are unique"""
        doc = department.model_dump()
        doc["_id"] = department.department_id

        try:
            self._departments.insert_one(doc)
        except DuplicateKeyError:
            raise AlreadyExistsError("Department name already exists", details={"name": department.name})

        logger.info(
            f"Created department: {department.department_id}",
            extra={"department_id": department.department_id}
        )
        return department

    def get_department(self, department_id: str) -> Optional[Department]:
        doc = self._departments.find_one({"department_id": department_id})
        return self._to_model(doc) if doc else None

    def get_department_or_raise(self, department_id: str) -> Department:
        department = self.get_department(department_id)
        if not department:
            raise DepartmentNotFoundError("Department not found", details={"department_id": department_id})
        return department

    def list_departments(self) -> List[Department]:
        """All departments, alphabetically"""
        cursor = self._departments.find({}).sort("name", ASCENDING)
        return [self._to_model(doc) for doc in cursor]

    def update_department(self, department_id: str, updates: Dict[str, Any]) -> Department:
        """Apply field updates and return the new state"""
        try:
            result = self._departments.find_one_and_update(
                {"department_id": department_id},
                {"$set": {**updates, "updated_at": utc_now()}},
                return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise AlreadyExistsError("Department name already exists", details={"name": updates.get("name")})

        if result is None:
            raise DepartmentNotFoundError("Department not found", details={"department_id": department_id})

        logger.info(f"Updated department: {department_id}", extra={"department_id": department_id})
        return self._to_model(result)

    def replace_department(self, department: Department) -> None:
        """Overwrite a department with a previous snapshot"""
        doc = department.model_dump()
        doc["_id"] = department.department_id
        self._departments.replace_one({"department_id": department.department_id}, doc, upsert=True)

    def delete_department(self, department_id: str) -> bool:
        """Delete a department. Returns True if deleted."""
        result = self._departments.delete_one({"department_id": department_id})
        return result.deleted_count > 0
