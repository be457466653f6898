"""Time card schemas."""

import datetime as dt

from pydantic import Field, field_validator

from src.schemas.base import CamelModel, UserSummary
from src.services.timecard import normalize_entry_date


class TimeCardSubmit(CamelModel):
    """Submit (or resubmit) hours for one day."""

    date: dt.date
    hours_worked: float = Field(..., ge=0, le=24)
    notes: str | None = Field(None, max_length=500)

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value):
        # Accepts "YYYY-MM-DD" or a full ISO timestamp; time of day is discarded
        return normalize_entry_date(value)

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, value: str | None) -> str | None:
        return value.strip() if value is not None else None


class TimeCardResponse(CamelModel):
    """Time card with the related users attached."""

    id: int
    employee_id: int
    employer_id: int
    date: dt.date
    hours_worked: float
    notes: str
    is_locked: bool
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None
    employee: UserSummary | None = None
    employer: UserSummary | None = None


class TimeCardSubmitResponse(CamelModel):
    success: bool = True
    message: str
    time_card: TimeCardResponse


class TimeCardListResponse(CamelModel):
    success: bool = True
    count: int
    time_cards: list[TimeCardResponse]


class AdminTimeCardListResponse(TimeCardListResponse):
    total_hours: float


class EmployeeListResponse(CamelModel):
    success: bool = True
    count: int
    employees: list[UserSummary]


class WeeklyEntry(CamelModel):
    date: dt.date
    hours_worked: float
    notes: str


class EmployeeWeek(CamelModel):
    employee: UserSummary
    entries: list[WeeklyEntry]
    total_hours: float


class WeeklySummaryResponse(CamelModel):
    success: bool = True
    week_start: dt.date
    week_end: dt.date
    summary: list[EmployeeWeek]


class TimeCardStats(CamelModel):
    total_hours: float
    total_entries: int
    unique_employees: int
    average_hours_per_day: float
    hours_by_day: dict[str, float]


class TimeCardStatsResponse(CamelModel):
    success: bool = True
    stats: TimeCardStats
