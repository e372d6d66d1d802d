"""Access policy"""
from .permission_guard import PermissionGuard, STAFF_ROLES

__all__ = [
    "PermissionGuard",
    "STAFF_ROLES",
]
