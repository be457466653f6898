"""Enums for model fields."""

from enum import StrEnum


class UserRole(StrEnum):
    """Roles a user account can hold."""

    ADMIN = "admin"
    EMPLOYER = "employer"
    EMPLOYEE = "employee"

    def can_submit_hours(self) -> bool:
        """Check if this role logs its own hours."""
        return self in (UserRole.EMPLOYER, UserRole.EMPLOYEE)


class PasswordChangeStatus(StrEnum):
    """Review states of an admin-approved password change."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
