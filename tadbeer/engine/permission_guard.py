"""Permission Guard - Authorization enforcement for ticket access"""
from typing import Any, Dict, Optional

from ..domain.models import ActorContext, Comment, Ticket, User
from ..domain.enums import UserRole
from ..domain.errors import PermissionDeniedError
from ..utils.logger import get_logger

logger = get_logger(__name__)


# Roles that work the queue and see every ticket
STAFF_ROLES = (UserRole.AGENT, UserRole.MANAGER, UserRole.ADMIN)


class PermissionGuard:
    """
    Permission enforcement for ticket operations

    Rules:
    - Agents, managers and admins can access any ticket
    - A plain user can only access tickets they created or are assigned to
    - Comments can be removed by their author, a manager or an admin
    - Profiles are visible to self, admins and the manager of the same department

    The same ticket predicate guards read, update, status change, comments
    and AI assistance, and ``ticket_visibility_filter`` narrows listings to
    exactly the tickets the predicate allows.
    """

    def can_access_ticket(self, actor: ActorContext, ticket: Ticket) -> bool:
        """Check if actor can read or act on a ticket"""
        if actor.has_role(*STAFF_ROLES):
            return True
        return ticket.involves(actor.user_id)

    def ensure_can_access_ticket(self, actor: ActorContext, ticket: Ticket) -> None:
        """Raise PermissionDeniedError unless the actor can access the ticket"""
        if not self.can_access_ticket(actor, ticket):
            logger.warning(
                f"Ticket access denied for {actor.user_id}",
                extra={"ticket_id": ticket.ticket_id, "user_id": actor.user_id, "role": actor.role.value}
            )
            raise PermissionDeniedError(
                "Not authorized to access this ticket",
                details={"ticket_id": ticket.ticket_id}
            )

    def ticket_visibility_filter(self, actor: ActorContext) -> Optional[Dict[str, Any]]:
        """Mongo clause restricting listings to accessible tickets (None = no restriction)"""
        if actor.has_role(*STAFF_ROLES):
            return None
        return {"$or": [{"created_by": actor.user_id}, {"assignee": actor.user_id}]}

    def can_delete_comment(self, actor: ActorContext, comment: Comment) -> bool:
        if actor.has_role(UserRole.MANAGER, UserRole.ADMIN):
            return True
        return comment.user_id == actor.user_id

    def can_view_user(self, actor: ActorContext, actor_user: Optional[User], target: User) -> bool:
        """Self, admin, or a manager sharing the target's department"""
        if actor.user_id == target.user_id or actor.has_role(UserRole.ADMIN):
            return True
        if actor.has_role(UserRole.MANAGER) and actor_user and actor_user.department_id:
            return actor_user.department_id == target.department_id
        return False
