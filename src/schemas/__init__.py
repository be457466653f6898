"""Pydantic schemas for API requests and responses."""

from src.schemas.admin import UserCreate, UserStatusUpdate, UserUpdate
from src.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    UserLogin,
    UserResponse,
)
from src.schemas.base import MessageResponse, UserSummary
from src.schemas.password_change import PasswordChangeCreate, PasswordChangeReject
from src.schemas.timecard import TimeCardResponse, TimeCardSubmit

__all__ = [
    "UserLogin",
    "UserResponse",
    "AuthResponse",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "MessageResponse",
    "UserSummary",
    "UserCreate",
    "UserUpdate",
    "UserStatusUpdate",
    "TimeCardSubmit",
    "TimeCardResponse",
    "PasswordChangeCreate",
    "PasswordChangeReject",
]
