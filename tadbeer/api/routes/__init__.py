"""API Routes module"""
from fastapi import APIRouter

from .auth import router as auth_router
from .tickets import router as tickets_router
from .notifications import router as notifications_router
from .users import router as users_router
from .departments import router as departments_router
from .ai import router as ai_router

# Main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(auth_router, prefix="/auth", tags=["Auth"])
api_router.include_router(tickets_router, tags=["Tickets"])
api_router.include_router(notifications_router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(users_router, prefix="/users", tags=["Users"])
api_router.include_router(departments_router, prefix="/departments", tags=["Departments"])
api_router.include_router(ai_router, prefix="/ai", tags=["AI"])

__all__ = ["api_router"]
