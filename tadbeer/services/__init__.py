"""Service modules - Business logic layer"""
from .notification_service import NotificationService
from .ticket_service import TicketService
from .user_service import UserService
from .auth_service import AuthService
from .department_service import DepartmentService, CompensationLog

__all__ = [
    "NotificationService",
    "TicketService",
    "UserService",
    "AuthService",
    "DepartmentService",
    "CompensationLog",
]
