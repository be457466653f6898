"""Authentication and password reset API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from src.api.dependencies import (
    CurrentIdentity,
    get_auth_service,
    get_current_user,
    get_password_reset_service,
)
from src.exceptions import AuthorizationError, error_body
from src.models.user import User
from src.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    MeResponse,
    ResetPasswordRequest,
    ResetTokenOwner,
    UserLogin,
    UserResponse,
    VerifyResetTokenResponse,
)
from src.schemas.base import MessageResponse
from src.services.auth import AuthService
from src.services.password_reset import FORGOT_PASSWORD_MESSAGE, PasswordResetService

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_403_FORBIDDEN)
def register():
    """Self-registration is disabled; admins create accounts."""
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content=error_body(
            "Self-registration is disabled. "
            "Please contact your administrator to create an account.",
            AuthorizationError.error_code,
        ),
    )


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: UserLogin,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
):
    """Login with email, password and optionally the portal role."""
    token, user = auth_service.authenticate(
        credentials.email, credentials.password, credentials.selected_role
    )
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=MeResponse)
def get_me(current_user: Annotated[User, Depends(get_current_user)]):
    """Get current user information."""
    return MeResponse(user=UserResponse.model_validate(current_user))


@router.post("/logout", response_model=MessageResponse)
def logout(identity: CurrentIdentity):
    """Logout (client should discard token)."""
    return MessageResponse(message="Logged out successfully")


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    body: ForgotPasswordRequest,
    reset_service: Annotated[PasswordResetService, Depends(get_password_reset_service)],
):
    """Email a reset link if the account exists and is active.

    The response is identical whether or not a link was sent.
    """
    reset_service.request_reset(body.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.get("/verify-reset-token/{token}", response_model=VerifyResetTokenResponse)
def verify_reset_token(
    token: str,
    reset_service: Annotated[PasswordResetService, Depends(get_password_reset_service)],
):
    """Check a reset link before showing the new-password form."""
    email = reset_service.verify_token(token)
    return VerifyResetTokenResponse(user=ResetTokenOwner(email=email))


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest,
    reset_service: Annotated[PasswordResetService, Depends(get_password_reset_service)],
):
    """Set a new password from a reset token, or by email in Supabase sync mode."""
    if body.supabase_sync:
        reset_service.sync_password(body.email, body.password)
    else:
        reset_service.complete_reset(body.token, body.password)
    return MessageResponse(
        message="Password has been reset successfully. You can now log in with your new password."
    )
