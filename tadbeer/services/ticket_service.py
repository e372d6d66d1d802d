"""Ticket Service - Ticket management business logic

Every mutation follows the same order: the access policy is checked, the
store is written, and only then are notifications emitted. Emission is
best-effort and never undoes a committed write.
"""
from typing import Any, Dict, List, Optional

from ..domain.models import Ticket, Comment, ActorContext, User
from ..domain.enums import TicketStatus, UserRole
from ..domain.errors import PermissionDeniedError, ValidationError
from ..engine.permission_guard import PermissionGuard
from ..repositories.ticket_repo import TicketRepository
from ..repositories.comment_repo import CommentRepository
from ..repositories.user_repo import UserRepository
from .notification_service import NotificationService
from ..utils.idgen import generate_ticket_id, generate_comment_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


# Fields a PUT may change; created_by is immutable
UPDATABLE_FIELDS = (
    "title", "description", "category", "priority", "status",
    "assignee", "department_id", "due_date", "tags", "attachments",
)

# Fields that may be cleared with null
NULLABLE_FIELDS = ("assignee", "department_id", "due_date")


def _summary(users: Dict[str, User], user_id: Optional[str]) -> Optional[Dict[str, Any]]:
    user = users.get(user_id) if user_id else None
    return user.to_summary().model_dump(mode="json") if user else None


class TicketService:
    """Service for ticket operations"""

    def __init__(self):
        self.ticket_repo = TicketRepository()
        self.comment_repo = CommentRepository()
        self.user_repo = UserRepository()
        self.notifications = NotificationService()
        self.guard = PermissionGuard()

    # =========================================================================
    # Presentation
    # =========================================================================

    def present_ticket(self, ticket: Ticket, users: Optional[Dict[str, User]] = None) -> Dict[str, Any]:
        """Ticket as JSON with creator and assignee summaries embedded"""
        if users is None:
            users = self.user_repo.get_users_by_ids([ticket.created_by, ticket.assignee])
        data = ticket.model_dump(mode="json")
        data["created_by_user"] = _summary(users, ticket.created_by)
        data["assignee_user"] = _summary(users, ticket.assignee)
        return data

    def present_tickets(self, tickets: List[Ticket]) -> List[Dict[str, Any]]:
        ids = [t.created_by for t in tickets] + [t.assignee for t in tickets]
        users = self.user_repo.get_users_by_ids(ids)
        return [self.present_ticket(t, users) for t in tickets]

    def present_comment(self, comment: Comment, users: Optional[Dict[str, User]] = None) -> Dict[str, Any]:
        if users is None:
            users = self.user_repo.get_users_by_ids([comment.user_id])
        data = comment.model_dump(mode="json")
        data["author"] = _summary(users, comment.user_id)
        return data

    # =========================================================================
    # Queries
    # =========================================================================

    def list_tickets(self, actor: ActorContext, filters: Dict[str, Any]) -> List[Ticket]:
        """
        List tickets visible to the actor, newest first.

        Supported filters: status, priority, category, assignee, created_by.
        """
        return self.ticket_repo.list_tickets(
            filters,
            visibility=self.guard.ticket_visibility_filter(actor)
        )

    def get_ticket(self, actor: ActorContext, ticket_id: str) -> Ticket:
        """Fetch a ticket the actor may access (404 before 403)"""
        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        self.guard.ensure_can_access_ticket(actor, ticket)
        return ticket

    def get_ticket_detail(self, actor: ActorContext, ticket_id: str) -> Dict[str, Any]:
        """Ticket plus its visible comments in chronological order"""
        ticket = self.get_ticket(actor, ticket_id)
        comments = self.comment_repo.list_for_ticket(ticket_id)

        ids = [ticket.created_by, ticket.assignee] + [c.user_id for c in comments]
        users = self.user_repo.get_users_by_ids(ids)
        return {
            "ticket": self.present_ticket(ticket, users),
            "comments": [self.present_comment(c, users) for c in comments],
        }

    # =========================================================================
    # Mutations
    # =========================================================================

    def _validate_assignee(self, assignee: Optional[str]) -> Optional[str]:
        """Normalize an assignee value; empty means unassigned"""
        if not assignee:
            return None
        if not self.user_repo.exists(assignee):
            raise ValidationError("Assignee does not exist", details={"assignee": assignee})
        return assignee

    def create_ticket(self, actor: ActorContext, data: Dict[str, Any]) -> Ticket:
        """Create a ticket owned by the actor and notify its assignee"""
        if not actor.has_role(UserRole.MANAGER, UserRole.ADMIN, UserRole.AGENT):
            raise PermissionDeniedError("Not authorized to create tickets")

        now = utc_now()
        ticket = Ticket(
            **{k: v for k, v in data.items() if k in UPDATABLE_FIELDS and v is not None},
            ticket_id=generate_ticket_id(),
            created_by=actor.user_id,
            created_at=now,
            updated_at=now
        )
        ticket.assignee = self._validate_assignee(ticket.assignee)

        self.ticket_repo.create_ticket(ticket)

        if ticket.assignee:
            self.notifications.notify_ticket_assigned(ticket, ticket.assignee)

        return ticket

    def update_ticket(self, actor: ActorContext, ticket_id: str, updates: Dict[str, Any]) -> Ticket:
        """
        Partially update a ticket.

        Only the provided fields are written (last write wins). A
        ticket_assigned notification goes to the new assignee when the write
        replaced the assignee this request observed. If a concurrent update
        changed the assignee in between, the stale write still lands but
        stays silent, so racing reassignments notify exactly once.
        """
        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        self.guard.ensure_can_access_ticket(actor, ticket)

        changes = {
            k: v for k, v in updates.items()
            if k in UPDATABLE_FIELDS and (v is not None or k in NULLABLE_FIELDS)
        }
        if "assignee" in changes:
            changes["assignee"] = self._validate_assignee(changes["assignee"])
        if not changes:
            return ticket

        before, after = self.ticket_repo.update_ticket(ticket_id, changes)

        if (
            "assignee" in changes
            and after.assignee
            and after.assignee != before.assignee
            and before.assignee == ticket.assignee
        ):
            self.notifications.notify_ticket_assigned(after, after.assignee)

        logger.info(
            f"Ticket {ticket_id} updated by {actor.user_id}",
            extra={"ticket_id": ticket_id, "user_id": actor.user_id, "action": "update"}
        )
        return after

    def change_status(self, actor: ActorContext, ticket_id: str, status: TicketStatus) -> Ticket:
        """Move a ticket to any status. Emits nothing."""
        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        self.guard.ensure_can_access_ticket(actor, ticket)

        _, after = self.ticket_repo.update_ticket(ticket_id, {"status": status})
        logger.info(
            f"Ticket {ticket_id} status {ticket.status.value} -> {status.value}",
            extra={"ticket_id": ticket_id, "user_id": actor.user_id, "action": "status"}
        )
        return after

    def add_comment(self, actor: ActorContext, ticket_id: str, text: str) -> Comment:
        """Append a comment and notify the other participants"""
        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        self.guard.ensure_can_access_ticket(actor, ticket)

        now = utc_now()
        comment = Comment(
            comment_id=generate_comment_id(),
            ticket_id=ticket_id,
            user_id=actor.user_id,
            content=text,
            created_at=now,
            updated_at=now
        )
        self.comment_repo.create_comment(comment)
        self.notifications.notify_comment_added(ticket, comment)
        return comment

    def delete_comment(self, actor: ActorContext, ticket_id: str, comment_id: str) -> Comment:
        """Soft-delete a comment (author, manager or admin)"""
        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        self.guard.ensure_can_access_ticket(actor, ticket)

        comment = self.comment_repo.get_comment_or_raise(comment_id)
        if comment.ticket_id != ticket_id:
            raise ValidationError(
                "Comment does not belong to this ticket",
                details={"ticket_id": ticket_id, "comment_id": comment_id}
            )
        if not self.guard.can_delete_comment(actor, comment):
            raise PermissionDeniedError("Not authorized to delete this comment")

        return self.comment_repo.soft_delete(comment_id)

    def delete_ticket(self, actor: ActorContext, ticket_id: str) -> None:
        """Hard-delete a ticket (admin/manager)"""
        if not actor.has_role(UserRole.ADMIN, UserRole.MANAGER):
            raise PermissionDeniedError("Not authorized to delete tickets")

        self.ticket_repo.get_ticket_or_raise(ticket_id)
        self.ticket_repo.delete_ticket(ticket_id)
        logger.info(
            f"Ticket {ticket_id} deleted by {actor.user_id}",
            extra={"ticket_id": ticket_id, "user_id": actor.user_id, "action": "delete"}
        )
