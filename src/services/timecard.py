"""Time card service: one entry per employee per day, frozen once locked."""

import logging
from collections import OrderedDict
from datetime import UTC, date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session, joinedload

from src.exceptions import (
    AuthorizationError,
    EmployerNotAssignedError,
    EntryLockedError,
    NotFoundError,
    ValidationError,
)
from src.models.enums import UserRole
from src.models.time_card import TimeCard
from src.models.user import User
from src.services.realtime import TimeCardEventType, publish_timecard_event

logger = logging.getLogger(__name__)

MAX_HOURS_PER_DAY = 24
DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def normalize_entry_date(value: date | datetime | str) -> date:
    """Reduce a submitted date to a calendar date.

    Aware timestamps are converted to UTC first, so the same instant always
    maps to the same day regardless of the submitter's timezone.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return normalize_entry_date(datetime.fromisoformat(text))
        except ValueError:
            pass
    raise ValueError("Valid date is required (YYYY-MM-DD)")


def round_hours(value: float) -> float:
    """Round to one decimal place, halves away from zero."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class TimecardService:
    """Service for time card submission, deletion and reporting."""

    def __init__(self, db: Session):
        self.db = db

    # ── Writes ──────────────────────────────────────────────────────

    def submit_entry(
        self,
        user_id: int,
        entry_date: date | datetime | str,
        hours_worked: float,
        notes: str | None = None,
    ) -> tuple[TimeCard, bool]:
        """Create or update the caller's entry for a day.

        Returns ``(entry, created)``. A resubmission for the same day updates
        the existing row unless it is locked.
        """
        # Input checks come before any datastore access
        try:
            hours = float(hours_worked)
        except (TypeError, ValueError) as e:
            raise ValidationError("Hours must be between 0 and 24") from e
        if not 0 <= hours <= MAX_HOURS_PER_DAY:
            raise ValidationError("Hours must be between 0 and 24")
        try:
            day = normalize_entry_date(entry_date)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError("User not found")
        if user.role == UserRole.EMPLOYER:
            employer_id = user.id
        elif user.role == UserRole.EMPLOYEE:
            if user.employer_id is None:
                raise EmployerNotAssignedError()
            employer_id = user.employer_id
        else:
            raise AuthorizationError("Only employees and employers can log hours")

        existing = self._find_entry(user.id, day)
        if existing is not None:
            return self._update_entry(existing, hours, notes), False

        entry = TimeCard(
            employee_id=user.id,
            employer_id=employer_id,
            date=day,
            hours_worked=hours,
            notes=notes or "",
            is_locked=False,
        )
        self.db.add(entry)
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent submission for the same day inserted first
            self.db.rollback()
            existing = self._find_entry(user.id, day)
            if existing is None:
                raise
            logger.warning(
                f"Concurrent insert for employee {user.id} on {day}; updating the stored entry"
            )
            return self._update_entry(existing, hours, notes), False

        self.db.refresh(entry)
        logger.info(f"Time entry {entry.id} created for employee {user.id} on {day}")
        self._publish(TimeCardEventType.TIMECARD_CREATED, entry)
        return entry, True

    def _find_entry(self, employee_id: int, day: date) -> TimeCard | None:
        return (
            self.db.query(TimeCard)
            .filter(TimeCard.employee_id == employee_id, TimeCard.date == day)
            .first()
        )

    def _update_entry(self, entry: TimeCard, hours: float, notes: str | None) -> TimeCard:
        if entry.is_locked:
            logger.info(f"Rejected update of locked time entry {entry.id}")
            raise EntryLockedError()

        entry.hours_worked = hours
        if notes:
            entry.notes = notes
        self.db.commit()
        self.db.refresh(entry)
        logger.info(f"Time entry {entry.id} updated")
        self._publish(TimeCardEventType.TIMECARD_UPDATED, entry)
        return entry

    def delete_entry(self, entry_id: int, acting_user_id: int) -> None:
        """Delete an unlocked entry owned by the acting employee."""
        entry = self.db.query(TimeCard).filter(TimeCard.id == entry_id).first()
        if entry is None:
            raise NotFoundError("Time entry not found")
        if entry.employee_id != acting_user_id:
            raise AuthorizationError("Not authorized to delete this entry")
        if entry.is_locked:
            raise EntryLockedError("This time entry is locked and cannot be deleted")

        event_args = (entry.id, entry.employee_id, entry.employer_id, entry.date)
        self.db.delete(entry)
        self.db.commit()
        logger.info(f"Time entry {entry_id} deleted by employee {acting_user_id}")
        publish_timecard_event(TimeCardEventType.TIMECARD_DELETED, *event_args)

    def _publish(self, event_type: TimeCardEventType, entry: TimeCard) -> None:
        publish_timecard_event(
            event_type, entry.id, entry.employee_id, entry.employer_id, entry.date
        )

    # ── Reads (newest first) ────────────────────────────────────────

    @staticmethod
    def _apply_date_range(query: Query, start: date | None, end: date | None) -> Query:
        if start is not None:
            query = query.filter(TimeCard.date >= start)
        if end is not None:
            query = query.filter(TimeCard.date <= end)
        return query

    @staticmethod
    def _newest_first(query: Query) -> list[TimeCard]:
        return query.order_by(TimeCard.date.desc(), TimeCard.id.desc()).all()

    def list_for_employee(
        self, employee_id: int, start: date | None = None, end: date | None = None
    ) -> list[TimeCard]:
        query = (
            self.db.query(TimeCard)
            .options(joinedload(TimeCard.employer))
            .filter(TimeCard.employee_id == employee_id)
        )
        return self._newest_first(self._apply_date_range(query, start, end))

    def list_for_employer(
        self,
        employer_id: int,
        start: date | None = None,
        end: date | None = None,
        employee_id: int | None = None,
    ) -> list[TimeCard]:
        query = (
            self.db.query(TimeCard)
            .options(joinedload(TimeCard.employee))
            .filter(TimeCard.employer_id == employer_id)
        )
        if employee_id is not None:
            query = query.filter(TimeCard.employee_id == employee_id)
        return self._newest_first(self._apply_date_range(query, start, end))

    def list_all(
        self,
        start: date | None = None,
        end: date | None = None,
        employee_id: int | None = None,
        employer_id: int | None = None,
    ) -> list[TimeCard]:
        query = self.db.query(TimeCard).options(
            joinedload(TimeCard.employee), joinedload(TimeCard.employer)
        )
        if employee_id is not None:
            query = query.filter(TimeCard.employee_id == employee_id)
        if employer_id is not None:
            query = query.filter(TimeCard.employer_id == employer_id)
        return self._newest_first(self._apply_date_range(query, start, end))

    def list_employees(self, employer_id: int) -> list[User]:
        """Active employees assigned to an employer, by name."""
        return (
            self.db.query(User)
            .filter(
                User.employer_id == employer_id,
                User.role == UserRole.EMPLOYEE.value,
                User.is_active.is_(True),
            )
            .order_by(User.name)
            .all()
        )

    # ── Reports ─────────────────────────────────────────────────────

    def weekly_summary(self, employer_id: int, week_start: date) -> dict[str, Any]:
        """Group an employer's entries for the 7 days from ``week_start`` by employee."""
        week_end = week_start + timedelta(days=6)
        entries = (
            self.db.query(TimeCard)
            .options(joinedload(TimeCard.employee))
            .filter(
                TimeCard.employer_id == employer_id,
                TimeCard.date >= week_start,
                TimeCard.date <= week_end,
            )
            .order_by(TimeCard.employee_id, TimeCard.date)
            .all()
        )

        summary: OrderedDict[int, dict[str, Any]] = OrderedDict()
        for entry in entries:
            bucket = summary.setdefault(
                entry.employee_id,
                {"employee": entry.employee, "entries": [], "total_hours": 0.0},
            )
            bucket["entries"].append(
                {"date": entry.date, "hours_worked": entry.hours_worked, "notes": entry.notes}
            )
            bucket["total_hours"] += entry.hours_worked

        for bucket in summary.values():
            bucket["total_hours"] = round_hours(bucket["total_hours"])

        return {"week_start": week_start, "week_end": week_end, "summary": list(summary.values())}

    def stats(self, start: date | None = None, end: date | None = None) -> dict[str, Any]:
        """System-wide totals for the admin dashboard."""
        entries = self._apply_date_range(self.db.query(TimeCard), start, end).all()

        total_hours = sum(entry.hours_worked for entry in entries)
        hours_by_day = dict.fromkeys(DAY_NAMES, 0.0)
        for entry in entries:
            hours_by_day[DAY_NAMES[entry.date.weekday()]] += entry.hours_worked

        return {
            "total_hours": round_hours(total_hours),
            "total_entries": len(entries),
            "unique_employees": len({entry.employee_id for entry in entries}),
            "average_hours_per_day": round_hours(total_hours / len(entries)) if entries else 0.0,
            "hours_by_day": {day: round_hours(hours) for day, hours in hours_by_day.items()},
        }

    @staticmethod
    def total_hours(entries: list[TimeCard]) -> float:
        return round_hours(sum(entry.hours_worked for entry in entries))
