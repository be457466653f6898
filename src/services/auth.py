"""Authentication service for JWT and password handling."""

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from src.config import get_settings
from src.exceptions import (
    AccountDeactivatedError,
    AccountNotFoundError,
    InvalidPasswordError,
    RoleMismatchError,
)
from src.models.enums import UserRole
from src.models.user import User

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def normalize_email(email: str) -> str:
    """Case-fold and trim an email for lookup and storage."""
    return email.strip().lower()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password with a fresh salt."""
    return pwd_context.hash(password)


def create_access_token(user_id: int, role: str, expires_delta: timedelta | None = None) -> str:
    """Create a signed bearer token carrying the user id and role."""
    settings = get_settings()
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=settings.jwt_expiration_minutes)
    )
    to_encode = {
        "sub": str(user_id),
        "role": str(role),
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT token; ``None`` if invalid or expired."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get a user by (normalized) email."""
    return db.query(User).filter(User.email == normalize_email(email)).first()


class AuthService:
    """Credential verification for the login endpoint."""

    def __init__(self, db: Session):
        self.db = db

    def authenticate(
        self,
        email: str,
        password: str,
        selected_role: UserRole | None = None,
    ) -> tuple[str, User]:
        """Verify credentials and issue a bearer token.

        Checks run in a fixed order: account exists, password matches, account
        is active, then the selected portal matches the stored role.
        """
        user = get_user_by_email(self.db, email)
        if user is None:
            logger.info("Login failed: no account for submitted email")
            raise AccountNotFoundError()

        if not verify_password(password, user.password_hash):
            logger.info(f"Login failed: invalid password for user {user.id}")
            raise InvalidPasswordError()

        if not user.is_active:
            logger.info(f"Login refused: user {user.id} is deactivated")
            raise AccountDeactivatedError()

        if selected_role is not None and selected_role != user.role:
            logger.info(
                f"Login refused: user {user.id} selected role {selected_role} but holds {user.role}"
            )
            raise RoleMismatchError(
                f"You cannot login as {selected_role}. Your account role is {user.role}."
            )

        logger.info(f"User {user.id} logged in as {user.role}")
        return create_access_token(user.id, user.role), user
