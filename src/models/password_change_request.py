"""Password change request model."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.enums import PasswordChangeStatus
from src.models.mixins import TimestampMixin


class PasswordChangeRequest(Base, TimestampMixin):
    """A user's proposed new password, applied only after admin approval."""

    __tablename__ = "password_change_requests"
    __table_args__ = (Index("ix_password_change_requests_user_status", "user_id", "status"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    new_password_hash = Column(String(255), nullable=False)
    status = Column(
        String(20), nullable=False, default=PasswordChangeStatus.PENDING.value, index=True
    )
    requested_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reason = Column(String(500), nullable=True)

    # Relationships
    user = relationship("User", foreign_keys=[user_id])
    reviewer = relationship("User", foreign_keys=[reviewed_by])
