"""Domain Models - Pydantic schemas for all entities"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, EmailStr, ConfigDict

from .enums import (
    TicketCategory, TicketPriority, TicketStatus, UserRole, UserStatus,
    NotificationType
)


# ============================================================================
# Identity
# ============================================================================

class ActorContext(BaseModel):
    """Current actor context from JWT token"""
    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., description="Authenticated user ID")
    role: UserRole = Field(..., description="Role at token issue time")

    def has_role(self, *roles: UserRole) -> bool:
        return self.role in roles


class UserSummary(BaseModel):
    """Public projection of a user embedded in other responses"""
    model_config = ConfigDict(extra="ignore")

    user_id: str
    name: str
    email: EmailStr
    role: UserRole


# ============================================================================
# User & Department
# ============================================================================

class User(BaseModel):
    """Helpdesk account"""
    model_config = ConfigDict(extra="ignore")

    user_id: str = Field(..., description="Unique user ID")
    name: str = Field(..., min_length=2, max_length=120)
    email: EmailStr = Field(..., description="Unique, lower-cased login email")
    password_hash: str = Field(..., description="Password hash, never exposed")
    role: UserRole = Field(default=UserRole.USER)
    status: UserStatus = Field(default=UserStatus.OFFLINE)
    department: Optional[str] = Field(None, description="Department name (denormalized)")
    department_id: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None
    expertise: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    def to_public(self) -> dict:
        """Serialize without the password hash"""
        return self.model_dump(mode="json", exclude={"password_hash"})

    def to_summary(self) -> UserSummary:
        return UserSummary(user_id=self.user_id, name=self.name, email=self.email, role=self.role)


class Department(BaseModel):
    """Organizational unit with an optional manager"""
    model_config = ConfigDict(extra="ignore")

    department_id: str = Field(..., description="Unique department ID")
    name: str = Field(..., min_length=2, max_length=80)
    description: Optional[str] = Field(None, max_length=500)
    manager_id: Optional[str] = Field(None, description="User managing this department")
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Ticket & Comment
# ============================================================================

class Attachment(BaseModel):
    """File reference attached to a ticket or comment"""
    model_config = ConfigDict(extra="ignore")

    filename: str
    url: str
    mimetype: Optional[str] = None
    size: Optional[int] = None
    uploaded_at: Optional[datetime] = None


class Ticket(BaseModel):
    """Helpdesk work item"""
    model_config = ConfigDict(extra="ignore")

    ticket_id: str = Field(..., description="Unique ticket ID")
    title: str
    description: str
    category: TicketCategory
    priority: TicketPriority = Field(default=TicketPriority.MEDIUM)
    status: TicketStatus = Field(default=TicketStatus.OPEN)
    created_by: str = Field(..., description="Owning user ID, immutable")
    assignee: Optional[str] = Field(None, description="User responsible for resolving")
    department_id: Optional[str] = None
    due_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    def involves(self, user_id: str) -> bool:
        """True if the user created or is assigned to this ticket"""
        return user_id in (self.created_by, self.assignee)


class Comment(BaseModel):
    """Ticket comment (soft-deleted via deleted_at)"""
    model_config = ConfigDict(extra="ignore")

    comment_id: str
    ticket_id: str
    user_id: str
    content: str = Field(..., max_length=5000)
    attachments: List[Attachment] = Field(default_factory=list)
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Notification
# ============================================================================

class Notification(BaseModel):
    """In-app notification for a single recipient"""
    model_config = ConfigDict(extra="ignore")

    notification_id: str
    user_id: str = Field(..., description="Recipient")
    type: NotificationType
    title: str
    message: str
    link: Optional[str] = None
    is_read: bool = Field(default=False)
    created_at: datetime
    updated_at: datetime
