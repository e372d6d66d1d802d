"""Users API - Account administration and profiles"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr, Field

from ..deps import get_current_user_dep, require_roles
from ...domain.models import ActorContext
from ...domain.enums import UserRole, UserStatus
from ...services.user_service import UserService

router = APIRouter()


class CreateUserRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    role: UserRole = UserRole.USER
    status: UserStatus = UserStatus.OFFLINE
    department_id: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=40)
    expertise: List[str] = Field(default_factory=list)


class UpdateUserRequest(BaseModel):
    """Admins may send any field; everyone else only name and phone"""
    name: Optional[str] = Field(None, min_length=2, max_length=120)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8, max_length=128)
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    department_id: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=40)
    avatar: Optional[str] = None
    expertise: Optional[List[str]] = None


class MessageResponse(BaseModel):
    message: str


@router.get("")
async def list_users(actor: ActorContext = Depends(require_roles(UserRole.ADMIN))):
    """All users, newest first (admin)"""
    return [u.to_public() for u in UserService().list_users(actor)]


@router.get("/department-employees")
async def list_department_employees(
    department_id: Optional[str] = Query(None, description="Required for admins"),
    actor: ActorContext = Depends(require_roles(UserRole.MANAGER, UserRole.ADMIN))
):
    """
    Agents and users of a department, by name

    Managers always get their own department.
    """
    return [u.to_public() for u in UserService().list_department_employees(actor, department_id)]


@router.get("/{user_id}")
async def get_user(user_id: str, actor: ActorContext = Depends(get_current_user_dep)):
    """Profile of a user (self, admin, or manager of the same department)"""
    return UserService().get_user(actor, user_id).to_public()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    request: CreateUserRequest,
    actor: ActorContext = Depends(require_roles(UserRole.ADMIN))
):
    """Create a user (admin)"""
    return UserService().create_user(actor, request.model_dump()).to_public()


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    request: UpdateUserRequest,
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Update a profile"""
    return UserService().update_user(actor, user_id, request.model_dump(exclude_unset=True)).to_public()


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: str, actor: ActorContext = Depends(require_roles(UserRole.ADMIN))):
    """Delete a user (admin)"""
    UserService().delete_user(actor, user_id)
    return MessageResponse(message="User deleted")
