"""Password change request schemas."""

import datetime as dt

from pydantic import Field

from src.schemas.base import CamelModel, UserSummary


class PasswordChangeCreate(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=6, max_length=128)


class PasswordChangeReject(CamelModel):
    reason: str = Field(..., min_length=1, max_length=500)


class PasswordChangeResponse(CamelModel):
    id: int
    user_id: int
    status: str
    requested_at: dt.datetime
    reviewed_by: int | None = None
    reviewed_at: dt.datetime | None = None
    reason: str | None = None
    user: UserSummary | None = None
    reviewer: UserSummary | None = None


class PasswordChangeEnvelope(CamelModel):
    success: bool = True
    message: str
    request: PasswordChangeResponse


class PasswordChangeListResponse(CamelModel):
    success: bool = True
    count: int
    requests: list[PasswordChangeResponse]
