"""API layer"""
from .deps import get_current_user_dep, require_roles

__all__ = ["get_current_user_dep", "require_roles"]
