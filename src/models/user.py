"""User model."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.enums import UserRole
from src.models.mixins import TimestampMixin


class User(Base, TimestampMixin):
    """User model for authentication, roles and employer assignment."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)  # stored lower-cased
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.EMPLOYEE.value)
    employer_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    designation = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True)

    # Relationships
    employer = relationship("User", remote_side=[id], backref="employees")
