"""Department Service - Departments and their manager linkage

A department's manager is mirrored onto the user document (role, department
id and name). MongoDB standalone deployments have no multi-document
transactions, so the writes that keep both sides consistent run inside a
CompensationLog: each completed write registers an undo action and a
failure replays them in reverse before the error is re-raised.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..domain.models import ActorContext, Department, User
from ..domain.enums import UserRole
from ..domain.errors import PermissionDeniedError, ValidationError
from ..repositories.department_repo import DepartmentRepository
from ..repositories.user_repo import UserRepository
from ..utils.idgen import generate_department_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CompensationLog:
    """Undo actions for a multi-document write, replayed newest first on failure"""

    def __init__(self, name: str):
        self.name = name
        self._undo: List[Tuple[str, Callable[[], Any]]] = []

    def record(self, description: str, undo: Callable[[], Any]) -> None:
        self._undo.append((description, undo))

    def rollback(self) -> None:
        while self._undo:
            description, undo = self._undo.pop()
            try:
                undo()
                logger.info(f"[{self.name}] Rolled back: {description}")
            except Exception as e:
                # Keep unwinding; the original error is what the caller sees
                logger.error(f"[{self.name}] Rollback failed for {description}: {e}", exc_info=True)

    def __enter__(self) -> "CompensationLog":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            logger.warning(f"[{self.name}] Write failed, compensating {len(self._undo)} step(s): {exc}")
            self.rollback()
        return False


class DepartmentService:
    """Service for department operations"""

    def __init__(self):
        self.repo = DepartmentRepository()
        self.user_repo = UserRepository()

    @staticmethod
    def _require_admin(actor: ActorContext) -> None:
        if not actor.has_role(UserRole.ADMIN):
            raise PermissionDeniedError("Admin access required")

    def present(self, department: Department, users: Optional[Dict[str, User]] = None) -> Dict[str, Any]:
        """Department as JSON with a manager summary embedded"""
        if users is None:
            users = self.user_repo.get_users_by_ids([department.manager_id])
        data = department.model_dump(mode="json")
        manager = users.get(department.manager_id) if department.manager_id else None
        data["manager"] = manager.to_summary().model_dump(mode="json") if manager else None
        return data

    def present_many(self, departments: List[Department]) -> List[Dict[str, Any]]:
        users = self.user_repo.get_users_by_ids([d.manager_id for d in departments])
        return [self.present(d, users) for d in departments]

    # =========================================================================
    # Queries
    # =========================================================================

    def list_departments(self) -> List[Department]:
        return self.repo.list_departments()

    def get_department(self, department_id: str) -> Department:
        return self.repo.get_department_or_raise(department_id)

    # =========================================================================
    # Manager linkage
    # =========================================================================

    def _resolve_manager(self, manager_id: Optional[str]) -> Optional[User]:
        if not manager_id:
            return None
        manager = self.user_repo.get_user(manager_id)
        if not manager:
            raise ValidationError("Manager not found", details={"manager_id": manager_id})
        return manager

    def _link_manager(self, log: CompensationLog, department: Department, manager: User) -> None:
        """Promote the user to manager of this department"""
        previous = {
            "role": manager.role,
            "department_id": manager.department_id,
            "department": manager.department,
        }
        self.user_repo.update_user(manager.user_id, {
            "role": UserRole.MANAGER,
            "department_id": department.department_id,
            "department": department.name,
        })
        log.record(
            f"link manager {manager.user_id}",
            lambda: self.user_repo.update_user(manager.user_id, previous)
        )

    def _unlink_manager(self, log: CompensationLog, department: Department, manager_id: str) -> None:
        """Detach a former manager still pointing at this department; role is kept"""
        manager = self.user_repo.get_user(manager_id)
        if not manager or manager.department_id != department.department_id:
            return
        previous = {"department_id": manager.department_id, "department": manager.department}
        self.user_repo.update_user(manager_id, {"department_id": None, "department": None})
        log.record(
            f"unlink manager {manager_id}",
            lambda: self.user_repo.update_user(manager_id, previous)
        )

    # =========================================================================
    # Mutations
    # =========================================================================

    def create_department(self, actor: ActorContext, data: Dict[str, Any]) -> Department:
        self._require_admin(actor)
        manager = self._resolve_manager(data.get("manager_id"))

        now = utc_now()
        department = Department(
            department_id=generate_department_id(),
            name=data["name"],
            description=data.get("description"),
            manager_id=manager.user_id if manager else None,
            created_at=now,
            updated_at=now
        )

        with CompensationLog("create_department") as log:
            self.repo.create_department(department)
            log.record(
                f"create department {department.department_id}",
                lambda: self.repo.delete_department(department.department_id)
            )
            if manager:
                self._link_manager(log, department, manager)

        logger.info(
            f"Department {department.department_id} created by {actor.user_id}",
            extra={"department_id": department.department_id, "user_id": actor.user_id, "action": "create"}
        )
        return department

    def update_department(self, actor: ActorContext, department_id: str, updates: Dict[str, Any]) -> Department:
        """
        Update name, description and/or manager.

        A rename is copied to every member; a manager change unlinks the
        previous manager and promotes the new one.
        """
        self._require_admin(actor)
        existing = self.repo.get_department_or_raise(department_id)

        changes = {k: v for k, v in updates.items() if k in ("name", "description", "manager_id")}
        if "name" in changes and not changes["name"]:
            changes.pop("name")

        manager_changed = "manager_id" in changes
        new_manager = self._resolve_manager(changes.get("manager_id")) if manager_changed else None
        if manager_changed:
            changes["manager_id"] = new_manager.user_id if new_manager else None

        if not changes:
            return existing

        with CompensationLog("update_department") as log:
            updated = self.repo.update_department(department_id, changes)
            log.record(
                f"update department {department_id}",
                lambda: self.repo.replace_department(existing)
            )

            if updated.name != existing.name:
                self.user_repo.rename_department(department_id, updated.name)
                log.record(
                    f"rename members of {department_id}",
                    lambda: self.user_repo.rename_department(department_id, existing.name)
                )

            if manager_changed:
                old_manager_id = existing.manager_id
                if old_manager_id and old_manager_id != updated.manager_id:
                    self._unlink_manager(log, updated, old_manager_id)
                if new_manager:
                    self._link_manager(log, updated, new_manager)

        logger.info(
            f"Department {department_id} updated by {actor.user_id}",
            extra={"department_id": department_id, "user_id": actor.user_id, "action": "update"}
        )
        return updated

    def delete_department(self, actor: ActorContext, department_id: str) -> None:
        """Delete a department and detach every user from it"""
        self._require_admin(actor)
        existing = self.repo.get_department_or_raise(department_id)

        with CompensationLog("delete_department") as log:
            self.repo.delete_department(department_id)
            log.record(
                f"delete department {department_id}",
                lambda: self.repo.replace_department(existing)
            )
            unlinked = self.user_repo.unlink_department(department_id)

        logger.info(
            f"Department {department_id} deleted, {unlinked} user(s) unlinked",
            extra={"department_id": department_id, "user_id": actor.user_id, "action": "delete"}
        )
