"""Admin user management schemas."""

import datetime as dt
from typing import Literal

from pydantic import EmailStr, Field, field_validator

from src.schemas.base import CamelModel, UserSummary

ManagedRole = Literal["employer", "employee"]


class UserCreate(CamelModel):
    """Create an employer or employee account."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    role: ManagedRole
    designation: str | None = Field(None, max_length=255)
    department: str | None = Field(None, max_length=255)
    employer_id: int | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class UserUpdate(CamelModel):
    """Partial update of a non-admin account."""

    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = Field(None, max_length=255)
    role: ManagedRole | None = None
    designation: str | None = Field(None, max_length=255)
    department: str | None = Field(None, max_length=255)
    employer_id: int | None = None


class UserStatusUpdate(CamelModel):
    is_active: bool


class AdminUserResponse(CamelModel):
    id: int
    name: str
    email: str
    role: str
    designation: str | None = None
    department: str | None = None
    employer_id: int | None = None
    is_active: bool
    created_at: dt.datetime | None = None
    employer: UserSummary | None = None


class AdminUserEnvelope(CamelModel):
    success: bool = True
    message: str
    user: AdminUserResponse


class AdminUserListResponse(CamelModel):
    success: bool = True
    count: int
    users: list[AdminUserResponse]


class EmployerListResponse(CamelModel):
    success: bool = True
    employers: list[UserSummary]
