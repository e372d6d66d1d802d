"""
Ticket CRUD Routes

Create, read, list, update and delete ticket endpoints.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from ...deps import get_current_user_dep, require_roles
from ....domain.models import ActorContext
from ....domain.enums import TicketCategory, TicketPriority, TicketStatus, UserRole
from ....services.ticket_service import TicketService
from ....utils.logger import get_logger
from .schemas import CreateTicketRequest, UpdateTicketRequest, MessageResponse

logger = get_logger(__name__)
router = APIRouter(prefix="/tickets")


@router.get("")
async def list_tickets(
    status: Optional[TicketStatus] = Query(None, description="Filter by status"),
    priority: Optional[TicketPriority] = Query(None, description="Filter by priority"),
    category: Optional[TicketCategory] = Query(None, description="Filter by category"),
    assignee: Optional[str] = Query(None, description="Filter by assignee user ID"),
    created_by: Optional[str] = Query(None, description="Filter by creator user ID"),
    actor: ActorContext = Depends(get_current_user_dep)
):
    """
    List tickets, newest first

    Plain users only see tickets they created or are assigned to.
    """
    service = TicketService()
    tickets = service.list_tickets(actor, {
        "status": status,
        "priority": priority,
        "category": category,
        "assignee": assignee,
        "created_by": created_by,
    })
    return service.present_tickets(tickets)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_ticket(
    request: CreateTicketRequest,
    actor: ActorContext = Depends(require_roles(UserRole.MANAGER, UserRole.ADMIN, UserRole.AGENT))
):
    """
    Create a new ticket

    Priority defaults to medium and status to open. The assignee, if any,
    must be an existing user and is notified.
    """
    service = TicketService()
    ticket = service.create_ticket(actor, request.model_dump())

    logger.info(
        f"Created ticket: {ticket.ticket_id}",
        extra={"ticket_id": ticket.ticket_id, "user_id": actor.user_id}
    )
    return service.present_ticket(ticket)


@router.get("/{ticket_id}")
async def get_ticket(
    ticket_id: str,
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Get a ticket with its comments (oldest first)"""
    service = TicketService()
    return service.get_ticket_detail(actor, ticket_id)


@router.put("/{ticket_id}")
async def update_ticket(
    ticket_id: str,
    request: UpdateTicketRequest,
    actor: ActorContext = Depends(get_current_user_dep)
):
    """
    Update ticket fields

    Only the fields present in the body are changed. Reassigning notifies
    the new assignee.
    """
    service = TicketService()
    ticket = service.update_ticket(actor, ticket_id, request.model_dump(exclude_unset=True))
    return service.present_ticket(ticket)


@router.delete("/{ticket_id}", response_model=MessageResponse)
async def delete_ticket(
    ticket_id: str,
    actor: ActorContext = Depends(require_roles(UserRole.ADMIN, UserRole.MANAGER))
):
    """Delete a ticket. Its comments and notifications are kept."""
    service = TicketService()
    service.delete_ticket(actor, ticket_id)
    return MessageResponse(message="Ticket deleted")
