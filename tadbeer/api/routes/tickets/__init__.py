"""
Ticket Routes Module

- crud.py: Create, list, get, update, delete tickets
- actions.py: Status change and comments

Both sub-routers carry the /tickets prefix themselves, so the collection
routes can use an empty path (GET /tickets rather than /tickets/).
"""

from fastapi import APIRouter

from .schemas import (
    CreateTicketRequest, UpdateTicketRequest, UpdateStatusRequest,
    AddCommentRequest, MessageResponse
)
from .crud import router as crud_router
from .actions import router as actions_router

router = APIRouter()
router.include_router(crud_router)
router.include_router(actions_router)

__all__ = [
    "router",
    # Schemas
    "CreateTicketRequest", "UpdateTicketRequest", "UpdateStatusRequest",
    "AddCommentRequest", "MessageResponse"
]
