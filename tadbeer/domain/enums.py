"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class TicketCategory(str, Enum):
    """What kind of problem a ticket describes"""
    TECHNICAL = "Technical"
    SECURITY = "Security"
    FEATURE = "Feature"
    ACCOUNT = "Account"
    BUG = "Bug"


class TicketPriority(str, Enum):
    """Ticket urgency"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TicketStatus(str, Enum):
    """Ticket lifecycle status - any status may move to any other"""
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    PENDING = "pending"
    RESOLVED = "resolved"
    CLOSED = "closed"


class UserRole(str, Enum):
    """Roles driving the access policy"""
    USER = "user"
    AGENT = "agent"
    MANAGER = "manager"
    ADMIN = "admin"


class UserStatus(str, Enum):
    """Agent availability"""
    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"


class NotificationType(str, Enum):
    """In-app notification categories"""
    TICKET_ASSIGNED = "ticket_assigned"
    TICKET_UPDATED = "ticket_updated"  # Reserved, not emitted yet
    COMMENT_ADDED = "comment_added"
    TICKET_OVERDUE = "ticket_overdue"  # Reserved, not emitted yet
    SYSTEM = "system"


class AgentTool(str, Enum):
    """Read-only tools the AI chat agent may request"""
    SEARCH_KNOWLEDGE = "search_knowledge"
    GET_TICKET = "get_ticket"
    GET_TICKET_COMMENTS = "get_ticket_comments"
    SEARCH_TICKETS = "search_tickets"
    GET_USER_BASIC = "get_user_basic"
