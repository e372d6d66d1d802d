"""
Ticket Actions Routes

- Change status
- Add comment
- Remove comment
"""

from fastapi import APIRouter, Depends, status

from ...deps import get_current_user_dep
from ....domain.models import ActorContext
from ....services.ticket_service import TicketService
from ....utils.logger import get_logger
from .schemas import UpdateStatusRequest, AddCommentRequest, MessageResponse

logger = get_logger(__name__)
router = APIRouter(prefix="/tickets")


@router.patch("/{ticket_id}/status")
async def update_status(
    ticket_id: str,
    request: UpdateStatusRequest,
    actor: ActorContext = Depends(get_current_user_dep)
):
    """
    Change ticket status

    Any status may move to any other. No notification is sent.
    """
    service = TicketService()
    ticket = service.change_status(actor, ticket_id, request.status)
    return service.present_ticket(ticket)


@router.post("/{ticket_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_comment(
    ticket_id: str,
    request: AddCommentRequest,
    actor: ActorContext = Depends(get_current_user_dep)
):
    """
    Comment on a ticket

    The assignee and the creator are notified, except whoever wrote it.
    """
    service = TicketService()
    comment = service.add_comment(actor, ticket_id, request.text)
    return {"comment": service.present_comment(comment)}


@router.delete("/{ticket_id}/comments/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    ticket_id: str,
    comment_id: str,
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Hide a comment (author, manager or admin). The comment is kept in storage."""
    service = TicketService()
    service.delete_comment(actor, ticket_id, comment_id)
    return MessageResponse(message="Comment deleted")
