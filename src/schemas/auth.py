"""Authentication and password reset schemas."""

from pydantic import Field, model_validator

from src.models.enums import UserRole
from src.schemas.base import CamelModel


class UserLogin(CamelModel):
    """User login request.

    ``selected_role`` is the portal the user chose on the login screen; it must
    match the role stored on the account.
    """

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)
    selected_role: UserRole | None = None


class UserResponse(CamelModel):
    """User information response."""

    id: int
    name: str
    email: str
    role: UserRole
    designation: str | None = None
    department: str | None = None
    employer_id: int | None = None
    is_active: bool = True


class AuthResponse(CamelModel):
    """Authentication response with token and user info."""

    success: bool = True
    token: str
    token_type: str = "bearer"  # noqa: S105
    user: UserResponse


class MeResponse(CamelModel):
    success: bool = True
    user: UserResponse


class ForgotPasswordRequest(CamelModel):
    email: str = Field(..., min_length=3, max_length=255)


class ResetTokenOwner(CamelModel):
    email: str


class VerifyResetTokenResponse(CamelModel):
    success: bool = True
    user: ResetTokenOwner


class ResetPasswordRequest(CamelModel):
    """Complete a reset with a token, or by email when the reset was driven by Supabase Auth."""

    token: str | None = Field(None, max_length=64)
    email: str | None = Field(None, max_length=255)
    supabase_sync: bool = False
    password: str = Field(..., min_length=6, max_length=128)
    confirm_password: str = Field(..., max_length=128)

    @model_validator(mode="after")
    def check_reset_mode(self) -> "ResetPasswordRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        if self.supabase_sync:
            if not self.email:
                raise ValueError("Email is required for Supabase password sync")
        elif not self.token:
            raise ValueError("Reset token is required")
        return self
