"""Admin user management service."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from src.exceptions import (
    AuthorizationError,
    ConflictError,
    EmailDeliveryError,
    NotFoundError,
    ValidationError,
)
from src.models.enums import UserRole
from src.models.time_card import TimeCard
from src.models.user import User
from src.services.auth import get_password_hash, get_user_by_email, normalize_email
from src.services.email import EmailService

logger = logging.getLogger(__name__)


class UserAdminService:
    """Create, edit, deactivate and delete employer and employee accounts."""

    def __init__(self, db: Session, email_service: EmailService | None = None):
        self.db = db
        self.email_service = email_service or EmailService()

    def get_user(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _require_employer(self, employer_id: int) -> User:
        employer = self.db.query(User).filter(User.id == employer_id).first()
        if employer is None or employer.role != UserRole.EMPLOYER:
            raise ValidationError("Invalid employer ID")
        return employer

    def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: str,
        designation: str | None = None,
        department: str | None = None,
        employer_id: int | None = None,
    ) -> User:
        if role not in (UserRole.EMPLOYER, UserRole.EMPLOYEE):
            raise ValidationError("Role must be employer or employee")
        if get_user_by_email(self.db, email) is not None:
            raise ValidationError("User with this email already exists")

        if role == UserRole.EMPLOYEE:
            if employer_id is None:
                raise ValidationError("Employer ID is required for employee accounts")
            self._require_employer(employer_id)

        user = User(
            name=name,
            email=normalize_email(email),
            password_hash=get_password_hash(password),
            role=str(role),
            designation=designation,
            department=department,
            employer_id=employer_id if role == UserRole.EMPLOYEE else None,
            is_active=True,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Created {user.role} account {user.id}")

        try:
            self.email_service.send_welcome(user.email, user.name)
        except EmailDeliveryError as e:
            logger.error(f"Welcome email for user {user.id} failed: {e.message}")
        return user

    def list_users(self, role: str | None = None) -> list[User]:
        query = self.db.query(User).options(joinedload(User.employer))
        if role:
            query = query.filter(User.role == role)
        return query.order_by(User.created_at.desc(), User.id.desc()).all()

    def list_employers(self) -> list[User]:
        return (
            self.db.query(User)
            .filter(User.role == UserRole.EMPLOYER.value, User.is_active.is_(True))
            .order_by(User.name)
            .all()
        )

    def set_active(self, user_id: int, is_active: bool) -> User:
        user = self.get_user(user_id)
        user.is_active = is_active
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User {user.id} {'activated' if is_active else 'deactivated'}")
        return user

    def update_user(
        self,
        user_id: int,
        name: str | None = None,
        email: str | None = None,
        role: str | None = None,
        designation: str | None = None,
        department: str | None = None,
        employer_id: int | None = None,
    ) -> User:
        user = self.get_user(user_id)
        if user.role == UserRole.ADMIN:
            raise AuthorizationError("Cannot modify admin users")

        if name:
            user.name = name
        if email:
            normalized = normalize_email(email)
            other = get_user_by_email(self.db, normalized)
            if other is not None and other.id != user.id:
                raise ValidationError("User with this email already exists")
            user.email = normalized
        if designation:
            user.designation = designation
        if department:
            user.department = department

        if role == UserRole.EMPLOYER:
            user.role = UserRole.EMPLOYER.value
            user.employer_id = None
        elif role == UserRole.EMPLOYEE:
            user.role = UserRole.EMPLOYEE.value
            if employer_id is not None:
                self._require_employer(employer_id)
                user.employer_id = employer_id
        elif employer_id is not None and user.role == UserRole.EMPLOYEE:
            self._require_employer(employer_id)
            user.employer_id = employer_id

        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User {user.id} updated")
        return user

    def delete_user(self, user_id: int) -> None:
        """Delete a non-admin account.

        Employees of a deleted employer are detached. Accounts that still own
        time entries cannot be deleted and must be deactivated instead.
        """
        user = self.get_user(user_id)
        if user.role == UserRole.ADMIN:
            raise AuthorizationError("Cannot delete admin users")

        has_entries = (
            self.db.query(TimeCard.id)
            .filter((TimeCard.employee_id == user.id) | (TimeCard.employer_id == user.id))
            .first()
        )
        if has_entries is not None:
            raise ConflictError(
                "User has time entries and cannot be deleted. Deactivate the account instead."
            )

        self.db.query(User).filter(User.employer_id == user.id).update(
            {User.employer_id: None}, synchronize_session=False
        )
        self.db.delete(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("User is still referenced and cannot be deleted") from e
        logger.info(f"User {user_id} deleted")
