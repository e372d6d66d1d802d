"""Departments API"""
from typing import Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from ..deps import get_current_user_dep, require_roles
from ...domain.models import ActorContext
from ...domain.enums import UserRole
from ...services.department_service import DepartmentService

router = APIRouter()


class CreateDepartmentRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=80)
    description: Optional[str] = Field(None, max_length=500)
    manager_id: Optional[str] = None


class UpdateDepartmentRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=80)
    description: Optional[str] = Field(None, max_length=500)
    manager_id: Optional[str] = Field(None, description="Empty string or null removes the manager")


class MessageResponse(BaseModel):
    message: str


@router.get("")
async def list_departments(actor: ActorContext = Depends(get_current_user_dep)):
    """All departments, by name"""
    service = DepartmentService()
    return service.present_many(service.list_departments())


@router.get("/{department_id}")
async def get_department(department_id: str, actor: ActorContext = Depends(get_current_user_dep)):
    service = DepartmentService()
    return service.present(service.get_department(department_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_department(
    request: CreateDepartmentRequest,
    actor: ActorContext = Depends(require_roles(UserRole.ADMIN))
):
    """
    Create a department (admin)

    A manager, if given, is promoted to the manager role and linked.
    """
    service = DepartmentService()
    department = service.create_department(actor, request.model_dump())
    return service.present(department)


@router.put("/{department_id}")
async def update_department(
    department_id: str,
    request: UpdateDepartmentRequest,
    actor: ActorContext = Depends(require_roles(UserRole.ADMIN))
):
    """Update a department (admin)"""
    service = DepartmentService()
    department = service.update_department(actor, department_id, request.model_dump(exclude_unset=True))
    return service.present(department)


@router.delete("/{department_id}", response_model=MessageResponse)
async def delete_department(
    department_id: str,
    actor: ActorContext = Depends(require_roles(UserRole.ADMIN))
):
    """Delete a department and unlink its users (admin)"""
    DepartmentService().delete_department(actor, department_id)
    return MessageResponse(message="Department deleted")
