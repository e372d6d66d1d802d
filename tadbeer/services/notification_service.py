"""Notification Service - In-app notifications for ticket events

Notifications are best-effort: they are written after the ticket mutation
has been committed, and a failed write is logged and dropped so it never
fails the request that triggered it.
"""
from typing import List, Optional

from ..domain.models import Notification, Ticket, Comment, ActorContext
from ..domain.enums import NotificationType
from ..domain.errors import NotificationNotFoundError
from ..repositories.notification_repo import NotificationRepository
from ..utils.idgen import generate_notification_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


def ticket_link(ticket_id: str) -> str:
    return f"/tickets/{ticket_id}"


class NotificationService:
    """Service for emitting and reading in-app notifications"""

    def __init__(self):
        self.repo = NotificationRepository()

    # =========================================================================
    # Emission
    # =========================================================================

    def emit(
        self,
        recipient_id: str,
        notification_type: NotificationType,
        title: str,
        message: str,
        link: Optional[str] = None
    ) -> Optional[Notification]:
        """
        Create one notification for one recipient.

        Returns the notification, or None if the write failed. Errors are
        never raised to the caller.
        """
        now = utc_now()
        try:
            notification = Notification(
                notification_id=generate_notification_id(),
                user_id=recipient_id,
                type=notification_type,
                title=title,
                message=message,
                link=link,
                is_read=False,
                created_at=now,
                updated_at=now
            )
            return self.repo.create_notification(notification)
        except Exception as e:
            logger.error(
                f"Failed to create notification: {e}",
                extra={"user_id": recipient_id, "notification_type": notification_type.value},
                exc_info=True
            )
            return None

    def notify_ticket_assigned(self, ticket: Ticket, assignee_id: Optional[str]) -> Optional[Notification]:
        """Tell the new assignee about the ticket"""
        if not assignee_id:
            return None
        return self.emit(
            assignee_id,
            NotificationType.TICKET_ASSIGNED,
            "New ticket assigned",
            f"You have been assigned to ticket: {ticket.title}",
            ticket_link(ticket.ticket_id)
        )

    def notify_comment_added(self, ticket: Ticket, comment: Comment) -> List[Notification]:
        """Tell the assignee and the creator about a comment, except the commenter"""
        sent = []
        for recipient_id in self._comment_recipients(ticket, comment.user_id):
            notification = self.emit(
                recipient_id,
                NotificationType.COMMENT_ADDED,
                "New comment",
                f"New comment on ticket: {ticket.title}",
                ticket_link(ticket.ticket_id)
            )
            if notification:
                sent.append(notification)
        return sent

    @staticmethod
    def _comment_recipients(ticket: Ticket, commenter_id: str) -> List[str]:
        recipients: List[str] = []
        for user_id in (ticket.assignee, ticket.created_by):
            if user_id and user_id != commenter_id and user_id not in recipients:
                recipients.append(user_id)
        return recipients

    # =========================================================================
    # Inbox
    # =========================================================================

    def list_for_user(self, actor: ActorContext, limit: int = 50) -> List[Notification]:
        return self.repo.get_notifications_for_user(actor.user_id, limit=limit)

    def unread_count(self, actor: ActorContext) -> int:
        return self.repo.get_unread_count(actor.user_id)

    def mark_as_read(self, actor: ActorContext, notification_id: str) -> Notification:
        return self.repo.mark_as_read(notification_id, actor.user_id)

    def mark_all_as_read(self, actor: ActorContext) -> int:
        return self.repo.mark_all_as_read(actor.user_id)

    def delete(self, actor: ActorContext, notification_id: str) -> None:
        """Delete one of the actor's notifications; others' are reported as missing"""
        if not self.repo.delete_notification(notification_id, actor.user_id):
            raise NotificationNotFoundError(
                "Notification not found", details={"notification_id": notification_id}
            )
