"""Password change request API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import AdminIdentity, CurrentIdentity, get_password_change_service
from src.schemas.base import MessageResponse
from src.schemas.password_change import (
    PasswordChangeCreate,
    PasswordChangeEnvelope,
    PasswordChangeListResponse,
    PasswordChangeReject,
    PasswordChangeResponse,
)
from src.services.password_change import PasswordChangeService

router = APIRouter(prefix="/api/v1/password-change", tags=["password-change"])

Service = Annotated[PasswordChangeService, Depends(get_password_change_service)]


@router.post("/request", response_model=PasswordChangeEnvelope, status_code=status.HTTP_201_CREATED)
def request_password_change(
    body: PasswordChangeCreate, identity: CurrentIdentity, service: Service
):
    """Propose a new password for admin approval."""
    request = service.submit(identity.user_id, body.current_password, body.new_password)
    return PasswordChangeEnvelope(
        message="Password change request submitted successfully. Waiting for admin approval.",
        request=PasswordChangeResponse.model_validate(request),
    )


@router.get("/requests", response_model=PasswordChangeListResponse)
def list_requests(
    identity: AdminIdentity,
    service: Service,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
):
    """All requests, newest first."""
    requests = service.list_requests(status_filter)
    return PasswordChangeListResponse(
        count=len(requests),
        requests=[PasswordChangeResponse.model_validate(r) for r in requests],
    )


@router.get("/my-requests", response_model=PasswordChangeListResponse)
def list_my_requests(identity: CurrentIdentity, service: Service):
    requests = service.list_for_user(identity.user_id)
    return PasswordChangeListResponse(
        count=len(requests),
        requests=[PasswordChangeResponse.model_validate(r) for r in requests],
    )


@router.put("/approve/{request_id}", response_model=PasswordChangeEnvelope)
def approve_request(request_id: int, identity: AdminIdentity, service: Service):
    request = service.approve(request_id, identity.user_id)
    return PasswordChangeEnvelope(
        message=f"Password change approved for {request.user.name}",
        request=PasswordChangeResponse.model_validate(request),
    )


@router.put("/reject/{request_id}", response_model=PasswordChangeEnvelope)
def reject_request(
    request_id: int, body: PasswordChangeReject, identity: AdminIdentity, service: Service
):
    request = service.reject(request_id, identity.user_id, body.reason)
    return PasswordChangeEnvelope(
        message=f"Password change request rejected for {request.user.name}",
        request=PasswordChangeResponse.model_validate(request),
    )


@router.delete("/cancel/{request_id}", response_model=MessageResponse)
def cancel_request(request_id: int, identity: CurrentIdentity, service: Service):
    """Withdraw one of the caller's pending requests."""
    service.cancel(request_id, identity.user_id)
    return MessageResponse(message="Password change request cancelled successfully")
