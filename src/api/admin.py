"""Admin user management API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import AdminIdentity, get_user_admin_service
from src.schemas.admin import (
    AdminUserEnvelope,
    AdminUserListResponse,
    AdminUserResponse,
    EmployerListResponse,
    UserCreate,
    UserStatusUpdate,
    UserUpdate,
)
from src.schemas.base import MessageResponse, UserSummary
from src.services.users import UserAdminService

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])

Service = Annotated[UserAdminService, Depends(get_user_admin_service)]


@router.post("/users/create", response_model=AdminUserEnvelope, status_code=status.HTTP_201_CREATED)
def create_user(user_data: UserCreate, identity: AdminIdentity, service: Service):
    """Create an employer or employee account."""
    user = service.create_user(
        name=user_data.name,
        email=user_data.email,
        password=user_data.password,
        role=user_data.role,
        designation=user_data.designation,
        department=user_data.department,
        employer_id=user_data.employer_id,
    )
    return AdminUserEnvelope(
        message=f"{user.role} account created successfully",
        user=AdminUserResponse.model_validate(user),
    )


@router.get("/users", response_model=AdminUserListResponse)
def list_users(
    identity: AdminIdentity,
    service: Service,
    role: Annotated[str | None, Query()] = None,
):
    """List accounts, newest first, optionally filtered by role."""
    users = service.list_users(role)
    return AdminUserListResponse(
        count=len(users), users=[AdminUserResponse.model_validate(user) for user in users]
    )


@router.get("/employers", response_model=EmployerListResponse)
def list_employers(identity: AdminIdentity, service: Service):
    """Active employers, for assignment dropdowns."""
    return EmployerListResponse(
        employers=[UserSummary.model_validate(user) for user in service.list_employers()]
    )


@router.patch("/users/{user_id}/status", response_model=AdminUserEnvelope)
def update_user_status(
    user_id: int, status_data: UserStatusUpdate, identity: AdminIdentity, service: Service
):
    """Activate or deactivate an account."""
    user = service.set_active(user_id, status_data.is_active)
    return AdminUserEnvelope(
        message=f"User {'activated' if user.is_active else 'deactivated'} successfully",
        user=AdminUserResponse.model_validate(user),
    )


@router.put("/users/{user_id}", response_model=AdminUserEnvelope)
def update_user(user_id: int, user_data: UserUpdate, identity: AdminIdentity, service: Service):
    """Edit a non-admin account."""
    user = service.update_user(user_id, **user_data.model_dump(exclude_unset=True))
    return AdminUserEnvelope(
        message="User updated successfully", user=AdminUserResponse.model_validate(user)
    )


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, identity: AdminIdentity, service: Service):
    """Delete a non-admin account.

    Accounts that still own time entries are refused with 409; deactivate
    them instead. Deleting an employer unassigns its employees.
    """
    service.delete_user(user_id)
    return MessageResponse(message="User deleted successfully")
