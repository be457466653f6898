"""SQLAlchemy models."""

from src.models.password_change_request import PasswordChangeRequest
from src.models.password_reset_token import PasswordResetToken
from src.models.time_card import TimeCard
from src.models.user import User

__all__ = [
    "User",
    "PasswordResetToken",
    "TimeCard",
    "PasswordChangeRequest",
]
