"""Time card API endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from src.api.dependencies import (
    AdminIdentity,
    EmployeeIdentity,
    EmployerIdentity,
    WorkerIdentity,
    get_timecard_service,
)
from src.exceptions import ValidationError
from src.schemas.base import MessageResponse, UserSummary
from src.schemas.timecard import (
    AdminTimeCardListResponse,
    EmployeeListResponse,
    TimeCardListResponse,
    TimeCardResponse,
    TimeCardStats,
    TimeCardStatsResponse,
    TimeCardSubmit,
    TimeCardSubmitResponse,
    WeeklySummaryResponse,
)
from src.services.timecard import TimecardService

router = APIRouter(prefix="/api/v1/timecards", tags=["timecards"])

Service = Annotated[TimecardService, Depends(get_timecard_service)]
StartDate = Annotated[date | None, Query(alias="startDate")]
EndDate = Annotated[date | None, Query(alias="endDate")]


@router.post("", response_model=TimeCardSubmitResponse, status_code=status.HTTP_201_CREATED)
def submit_entry(
    entry_data: TimeCardSubmit,
    identity: WorkerIdentity,
    service: Service,
    response: Response,
):
    """Submit hours for a day; resubmitting the same day updates the entry."""
    entry, created = service.submit_entry(
        identity.user_id, entry_data.date, entry_data.hours_worked, entry_data.notes
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return TimeCardSubmitResponse(
        message="Time entry created successfully" if created else "Time entry updated successfully",
        time_card=TimeCardResponse.model_validate(entry),
    )


@router.get("/my-entries", response_model=TimeCardListResponse)
def get_my_entries(
    identity: WorkerIdentity,
    service: Service,
    start_date: StartDate = None,
    end_date: EndDate = None,
):
    """Get the caller's own entries, newest first."""
    entries = service.list_for_employee(identity.user_id, start_date, end_date)
    return TimeCardListResponse(
        count=len(entries),
        time_cards=[TimeCardResponse.model_validate(entry) for entry in entries],
    )


@router.get("/employer/entries", response_model=TimeCardListResponse)
def get_employer_entries(
    identity: EmployerIdentity,
    service: Service,
    start_date: StartDate = None,
    end_date: EndDate = None,
    employee_id: Annotated[int | None, Query(alias="employeeId")] = None,
):
    """Get entries of everyone billed to the calling employer, newest first."""
    entries = service.list_for_employer(identity.user_id, start_date, end_date, employee_id)
    return TimeCardListResponse(
        count=len(entries),
        time_cards=[TimeCardResponse.model_validate(entry) for entry in entries],
    )


@router.get("/employer/employees", response_model=EmployeeListResponse)
def get_employer_employees(identity: EmployerIdentity, service: Service):
    """List the calling employer's active employees."""
    employees = service.list_employees(identity.user_id)
    return EmployeeListResponse(
        count=len(employees),
        employees=[UserSummary.model_validate(employee) for employee in employees],
    )


@router.get("/employer/weekly-summary", response_model=WeeklySummaryResponse)
def get_weekly_summary(
    identity: EmployerIdentity,
    service: Service,
    start_date: StartDate = None,
):
    """Per-employee hours for the week starting at ``startDate``."""
    if start_date is None:
        raise ValidationError("Start date is required")
    summary = service.weekly_summary(identity.user_id, start_date)
    return WeeklySummaryResponse.model_validate(summary)


@router.get("/admin/all-entries", response_model=AdminTimeCardListResponse)
def get_all_entries(
    identity: AdminIdentity,
    service: Service,
    start_date: StartDate = None,
    end_date: EndDate = None,
    employee_id: Annotated[int | None, Query(alias="employeeId")] = None,
    employer_id: Annotated[int | None, Query(alias="employerId")] = None,
):
    """Get every entry in the system, newest first."""
    entries = service.list_all(start_date, end_date, employee_id, employer_id)
    return AdminTimeCardListResponse(
        count=len(entries),
        total_hours=service.total_hours(entries),
        time_cards=[TimeCardResponse.model_validate(entry) for entry in entries],
    )


@router.get("/admin/stats", response_model=TimeCardStatsResponse)
def get_stats(
    identity: AdminIdentity,
    service: Service,
    start_date: StartDate = None,
    end_date: EndDate = None,
):
    """Totals and hours per weekday for the admin dashboard."""
    stats = service.stats(start_date, end_date)
    return TimeCardStatsResponse(stats=TimeCardStats.model_validate(stats))


@router.delete("/{entry_id}", response_model=MessageResponse)
def delete_entry(entry_id: int, identity: EmployeeIdentity, service: Service):
    """Delete one of the caller's unlocked entries."""
    service.delete_entry(entry_id, identity.user_id)
    return MessageResponse(message="Time entry deleted successfully")
