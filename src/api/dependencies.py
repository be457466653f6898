"""FastAPI dependencies for authentication, authorization and services."""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from src.database import get_db
from src.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from src.models.enums import UserRole
from src.models.user import User
from src.services.auth import AuthService, decode_access_token
from src.services.email import EmailService
from src.services.password_change import PasswordChangeService
from src.services.password_reset import PasswordResetService
from src.services.timecard import TimecardService
from src.services.users import UserAdminService

# Missing credentials are reported as 401 by get_current_identity
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """Claims carried by a verified bearer token."""

    user_id: int
    role: UserRole


def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Identity:
    """Verify the bearer token and return its claims. No datastore access."""
    if credentials is None:
        raise AuthenticationError("Not authorized, no token")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Not authorized, token failed")

    try:
        return Identity(user_id=int(payload["sub"]), role=UserRole(payload["role"]))
    except (KeyError, TypeError, ValueError) as e:
        raise AuthenticationError("Not authorized, token failed") from e


def require_roles(*roles: UserRole):
    """Build a dependency that admits only tokens whose role is in ``roles``."""
    allowed = frozenset(roles)

    def check_role(
        identity: Annotated[Identity, Depends(get_current_identity)],
    ) -> Identity:
        if identity.role not in allowed:
            raise AuthorizationError(
                f"User role {identity.role} is not authorized to access this route"
            )
        return identity

    return check_role


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
AdminIdentity = Annotated[Identity, Depends(require_roles(UserRole.ADMIN))]
EmployerIdentity = Annotated[Identity, Depends(require_roles(UserRole.EMPLOYER))]
EmployeeIdentity = Annotated[Identity, Depends(require_roles(UserRole.EMPLOYEE))]
WorkerIdentity = Annotated[
    Identity, Depends(require_roles(UserRole.EMPLOYEE, UserRole.EMPLOYER))
]


def get_current_user(
    identity: CurrentIdentity,
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Load the account behind the token, for routes that need the full record."""
    user = db.query(User).filter(User.id == identity.user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    return user


def get_email_service() -> EmailService:
    """Get email service instance."""
    return EmailService()


def get_auth_service(db: Annotated[Session, Depends(get_db)]) -> AuthService:
    return AuthService(db)


def get_password_reset_service(
    db: Annotated[Session, Depends(get_db)],
    email_service: Annotated[EmailService, Depends(get_email_service)],
) -> PasswordResetService:
    """Get password reset service with dependencies."""
    return PasswordResetService(db, email_service)


def get_timecard_service(db: Annotated[Session, Depends(get_db)]) -> TimecardService:
    return TimecardService(db)


def get_user_admin_service(
    db: Annotated[Session, Depends(get_db)],
    email_service: Annotated[EmailService, Depends(get_email_service)],
) -> UserAdminService:
    return UserAdminService(db, email_service)


def get_password_change_service(
    db: Annotated[Session, Depends(get_db)],
) -> PasswordChangeService:
    return PasswordChangeService(db)
