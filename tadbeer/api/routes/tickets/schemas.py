"""
Ticket Schemas

Request models for ticket API endpoints.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ....domain.enums import TicketCategory, TicketPriority, TicketStatus


# =============================================================================
# Ticket CRUD Schemas
# =============================================================================

class AttachmentIn(BaseModel):
    """File reference supplied by the client"""
    filename: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, max_length=2000)
    mimetype: Optional[str] = None
    size: Optional[int] = Field(None, ge=0)
    uploaded_at: Optional[datetime] = None


class CreateTicketRequest(BaseModel):
    """Request to create a new ticket"""
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=5, max_length=5000)
    category: TicketCategory
    priority: Optional[TicketPriority] = None
    status: Optional[TicketStatus] = None
    assignee: Optional[str] = None
    department_id: Optional[str] = None
    due_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    attachments: List[AttachmentIn] = Field(default_factory=list)

    @field_validator("title", "description")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class UpdateTicketRequest(BaseModel):
    """Partial update; only the fields sent are written"""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = Field(None, min_length=5, max_length=5000)
    category: Optional[TicketCategory] = None
    priority: Optional[TicketPriority] = None
    status: Optional[TicketStatus] = None
    assignee: Optional[str] = Field(None, description="Empty string or null unassigns")
    department_id: Optional[str] = None
    due_date: Optional[datetime] = None
    tags: Optional[List[str]] = None
    attachments: Optional[List[AttachmentIn]] = None


# =============================================================================
# Action Schemas
# =============================================================================

class UpdateStatusRequest(BaseModel):
    """Request to move a ticket to another status"""
    status: TicketStatus


class AddCommentRequest(BaseModel):
    """Request to comment on a ticket"""
    text: str = Field(..., min_length=1, max_length=5000)

    @field_validator("text")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Comment text cannot be empty")
        return v.strip()


class MessageResponse(BaseModel):
    """Plain acknowledgement"""
    message: str
