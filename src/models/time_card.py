"""Time card model."""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.mixins import TimestampMixin


class TimeCard(Base, TimestampMixin):
    """Hours worked by one employee on one calendar day."""

    __tablename__ = "time_cards"
    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="uq_time_cards_employee_date"),
        Index("ix_time_cards_employer_date", "employer_id", "date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Copied from the employee's assignment when the entry is written
    employer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    date = Column(Date, nullable=False)
    hours_worked = Column(Numeric(5, 2, asdecimal=False), nullable=False)
    notes = Column(String(500), nullable=False, default="")
    is_locked = Column(Boolean, nullable=False, default=False)

    # Relationships
    employee = relationship("User", foreign_keys=[employee_id])
    employer = relationship("User", foreign_keys=[employer_id])
