"""Auth API - Registration, login and current user"""
from typing import Literal
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from ..deps import get_current_user_dep
from ...domain.models import ActorContext
from ...domain.enums import UserRole
from ...services.auth_service import AuthService

router = APIRouter()


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    # Managers are appointed through departments, never self-registered
    role: Literal["user", "agent", "admin"] = "user"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest):
    """Create an account and return a token for it"""
    token, user = AuthService().register(
        name=request.name,
        email=request.email,
        password=request.password,
        role=UserRole(request.role)
    )
    return {"token": token, "user": user.to_public()}


@router.post("/login")
async def login(request: LoginRequest):
    """Exchange email and password for a token"""
    token, user = AuthService().login(request.email, request.password)
    return {"token": token, "user": user.to_public()}


@router.get("/me")
async def me(actor: ActorContext = Depends(get_current_user_dep)):
    """Profile of the authenticated user"""
    return AuthService().me(actor).to_public()
