"""Password reset token model."""

from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from src.database import Base
from src.models.mixins import TimestampMixin, as_utc


class PasswordResetToken(Base, TimestampMixin):
    """Single-use, time-limited password reset token.

    ``user_id`` has no foreign key: tokens of a deleted user remain and fail
    verification because their owner is gone.
    """

    __tablename__ = "password_reset_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    token = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, nullable=False, default=False)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check expiry; a token is still valid at exactly ``expires_at``."""
        return (now or datetime.now(UTC)) > as_utc(self.expires_at)
