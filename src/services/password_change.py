"""Admin-approved password changes for signed-in users."""

import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session, joinedload

from src.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.models.enums import PasswordChangeStatus
from src.models.password_change_request import PasswordChangeRequest
from src.models.user import User
from src.services.auth import get_password_hash, verify_password

logger = logging.getLogger(__name__)


class PasswordChangeService:
    """A user proposes a new password; it takes effect only once an admin approves."""

    def __init__(self, db: Session):
        self.db = db

    def _get_request(self, request_id: int) -> PasswordChangeRequest:
        request = (
            self.db.query(PasswordChangeRequest)
            .options(joinedload(PasswordChangeRequest.user))
            .filter(PasswordChangeRequest.id == request_id)
            .first()
        )
        if request is None:
            raise NotFoundError("Password change request not found")
        return request

    def submit(
        self, user_id: int, current_password: str, new_password: str
    ) -> PasswordChangeRequest:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError("User not found")
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")

        pending = (
            self.db.query(PasswordChangeRequest)
            .filter(
                PasswordChangeRequest.user_id == user_id,
                PasswordChangeRequest.status == PasswordChangeStatus.PENDING.value,
            )
            .first()
        )
        if pending is not None:
            raise ValidationError("You already have a pending password change request")

        request = PasswordChangeRequest(
            user_id=user_id,
            new_password_hash=get_password_hash(new_password),
            status=PasswordChangeStatus.PENDING.value,
            requested_at=datetime.now(UTC),
        )
        self.db.add(request)
        self.db.commit()
        self.db.refresh(request)
        logger.info(f"Password change request {request.id} submitted by user {user_id}")
        return request

    def list_requests(self, status: str | None = None) -> list[PasswordChangeRequest]:
        query = self.db.query(PasswordChangeRequest).options(
            joinedload(PasswordChangeRequest.user), joinedload(PasswordChangeRequest.reviewer)
        )
        if status:
            query = query.filter(PasswordChangeRequest.status == status)
        return query.order_by(
            PasswordChangeRequest.requested_at.desc(), PasswordChangeRequest.id.desc()
        ).all()

    def list_for_user(self, user_id: int) -> list[PasswordChangeRequest]:
        return (
            self.db.query(PasswordChangeRequest)
            .options(joinedload(PasswordChangeRequest.reviewer))
            .filter(PasswordChangeRequest.user_id == user_id)
            .order_by(PasswordChangeRequest.requested_at.desc(), PasswordChangeRequest.id.desc())
            .all()
        )

    def _review(
        self, request: PasswordChangeRequest, reviewer_id: int, status: PasswordChangeStatus
    ) -> None:
        request.status = status.value
        request.reviewed_by = reviewer_id
        request.reviewed_at = datetime.now(UTC)

    def approve(self, request_id: int, reviewer_id: int) -> PasswordChangeRequest:
        request = self._get_request(request_id)
        if request.status != PasswordChangeStatus.PENDING:
            raise ValidationError("This request has already been processed")
        if request.user is None:
            raise NotFoundError("User not found")

        request.user.password_hash = request.new_password_hash
        self._review(request, reviewer_id, PasswordChangeStatus.APPROVED)
        self.db.commit()
        self.db.refresh(request)
        logger.info(f"Password change request {request.id} approved by {reviewer_id}")
        return request

    def reject(self, request_id: int, reviewer_id: int, reason: str) -> PasswordChangeRequest:
        request = self._get_request(request_id)
        if request.status != PasswordChangeStatus.PENDING:
            raise ValidationError("This request has already been processed")

        self._review(request, reviewer_id, PasswordChangeStatus.REJECTED)
        request.reason = reason
        self.db.commit()
        self.db.refresh(request)
        logger.info(f"Password change request {request.id} rejected by {reviewer_id}")
        return request

    def cancel(self, request_id: int, user_id: int) -> None:
        request = self._get_request(request_id)
        if request.user_id != user_id:
            raise AuthorizationError("Not authorized to cancel this request")
        if request.status != PasswordChangeStatus.PENDING:
            raise ValidationError("Can only cancel pending requests")

        self.db.delete(request)
        self.db.commit()
        logger.info(f"Password change request {request_id} cancelled")
