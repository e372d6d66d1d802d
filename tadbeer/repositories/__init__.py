"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection, create_indexes
from .user_repo import UserRepository
from .department_repo import DepartmentRepository
from .ticket_repo import TicketRepository
from .comment_repo import CommentRepository
from .notification_repo import NotificationRepository

__all__ = [
    "get_database",
    "get_collection",
    "create_indexes",
    "UserRepository",
    "DepartmentRepository",
    "TicketRepository",
    "CommentRepository",
    "NotificationRepository",
]
