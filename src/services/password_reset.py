"""Password reset token lifecycle.

A token moves from *created* to exactly one terminal state: used, expired, or
superseded by a newer request. At most one live token exists per user because
a new request deletes every earlier token for that user first. Expired tokens
are never swept; they are rejected when presented and removed by the user's
next request.
"""

import logging
import secrets
from datetime import UTC, datetime, timedelta
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from src.config import Settings, get_settings
from src.exceptions import (
    EmailDeliveryError,
    TokenExpiredError,
    TokenInvalidError,
    ValidationError,
)
from src.models.password_reset_token import PasswordResetToken
from src.models.user import User
from src.services.auth import get_password_hash, get_user_by_email
from src.services.email import EmailService

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = (
    "If an account exists with this email, a password reset link has been sent."
)


def generate_reset_token() -> str:
    """256 bits of randomness, hex-encoded."""
    return secrets.token_hex(32)


class PasswordResetService:
    """Issue, verify and consume password reset tokens."""

    def __init__(
        self,
        db: Session,
        email_service: EmailService | None = None,
        settings: Settings | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.email_service = email_service or EmailService(self.settings)

    def build_reset_url(self, token: str) -> str:
        base = self.settings.frontend_url.rstrip("/")
        return f"{base}/reset-password?{urlencode({'token': token})}"

    def request_reset(self, email: str) -> None:
        """Start a reset for ``email``.

        Returns nothing on every path so the caller's response cannot reveal
        whether the account exists or is active.
        """
        user = get_user_by_email(self.db, email)
        if user is None or not user.is_active:
            logger.info("Password reset requested for unknown or inactive account")
            return

        self._delete_tokens_for(user.id)
        token_value = generate_reset_token()
        self.db.add(
            PasswordResetToken(
                user_id=user.id,
                token=token_value,
                expires_at=datetime.now(UTC)
                + timedelta(minutes=self.settings.password_reset_token_ttl_minutes),
                used=False,
            )
        )
        self.db.commit()
        logger.info(f"Password reset token issued for user {user.id}")

        try:
            sent = self.email_service.send_password_reset(
                user.email, user.name, self.build_reset_url(token_value)
            )
        except EmailDeliveryError as e:
            logger.error(f"Password reset email for user {user.id} failed: {e.message}")
            return
        except Exception:
            # The acknowledgement is identical for every email, so mail errors stop here
            logger.exception(f"Password reset email for user {user.id} failed")
            return
        if not sent:
            logger.warning(f"Password reset email for user {user.id} was not sent")

    def _load_live_token(self, token: str) -> tuple[PasswordResetToken, User]:
        record = (
            self.db.query(PasswordResetToken)
            .filter(PasswordResetToken.token == token, PasswordResetToken.used.is_(False))
            .first()
        )
        if record is None:
            raise TokenInvalidError()
        if record.is_expired():
            raise TokenExpiredError()

        user = self.db.query(User).filter(User.id == record.user_id).first()
        if user is None:
            # Owner deleted after the token was issued
            raise TokenInvalidError()
        return record, user

    def verify_token(self, token: str) -> str:
        """Return the email of the token's owner if the token is usable."""
        _, user = self._load_live_token(token)
        return user.email

    def complete_reset(self, token: str, new_password: str) -> User:
        """Set a new password and invalidate every reset token of the owner."""
        record, user = self._load_live_token(token)

        user.password_hash = get_password_hash(new_password)
        record.used = True
        self.db.flush()
        self._delete_tokens_for(user.id)
        self.db.commit()

        logger.info(f"Password reset completed for user {user.id}")
        return user

    def sync_password(self, email: str, new_password: str) -> User:
        """Set a password by email after Supabase Auth has verified the reset.

        Token checks are skipped entirely; the caller is trusted to have
        proven identity through the Supabase session.
        """
        if not self.settings.supabase_sync_enabled:
            raise ValidationError("Password sync is not enabled")

        user = get_user_by_email(self.db, email)
        if user is None or not user.is_active:
            raise ValidationError("Unable to reset password for this account")

        user.password_hash = get_password_hash(new_password)
        self._delete_tokens_for(user.id)
        self.db.commit()

        logger.info(f"Password synced from Supabase Auth for user {user.id}")
        return user

    def _delete_tokens_for(self, user_id: int) -> None:
        self.db.query(PasswordResetToken).filter(PasswordResetToken.user_id == user_id).delete(
            synchronize_session=False
        )
