"""User Notifications API - In-app notification bell endpoints"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..deps import get_current_user_dep
from ...domain.models import ActorContext
from ...services.notification_service import NotificationService
from ...utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class NotificationResponse(BaseModel):
    """Single notification response"""
    notification_id: str
    user_id: str
    type: str
    title: str
    message: str
    link: Optional[str] = None
    is_read: bool
    created_at: str
    updated_at: str


class UnreadCountResponse(BaseModel):
    """Just the unread count"""
    unread_count: int


class MarkReadResponse(BaseModel):
    """Response after marking notifications read"""
    success: bool
    marked_count: int


class MessageResponse(BaseModel):
    message: str


# =============================================================================
# Endpoints
# =============================================================================

@router.get("", response_model=List[NotificationResponse])
async def get_notifications(
    limit: int = Query(50, ge=1, le=200),
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Get notifications for the current user, newest first"""
    service = NotificationService()
    return [n.model_dump(mode="json") for n in service.list_for_user(actor, limit=limit)]


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(actor: ActorContext = Depends(get_current_user_dep)):
    """Get count of unread notifications (for the badge)"""
    return UnreadCountResponse(unread_count=NotificationService().unread_count(actor))


@router.patch("/read-all", response_model=MarkReadResponse)
async def mark_all_read(actor: ActorContext = Depends(get_current_user_dep)):
    """Mark all of the current user's notifications as read"""
    count = NotificationService().mark_all_as_read(actor)
    return MarkReadResponse(success=True, marked_count=count)


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Mark one notification as read (404 if it is not the caller's)"""
    notification = NotificationService().mark_as_read(actor, notification_id)
    return notification.model_dump(mode="json")


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: str,
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Delete one notification (404 if it is not the caller's)"""
    NotificationService().delete(actor, notification_id)
    logger.info(f"Notification {notification_id} deleted", extra={"notification_id": notification_id})
    return MessageResponse(message="Notification deleted")
