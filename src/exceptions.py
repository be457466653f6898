"""Application error taxonomy and the handlers that render it as JSON."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# 400
class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class EmployerNotAssignedError(ValidationError):
    error_code = "EMPLOYER_NOT_ASSIGNED"
    default_message = "Employee must be assigned to an employer"


class TokenInvalidError(ValidationError):
    error_code = "TOKEN_INVALID"
    default_message = "Invalid or already used reset token"


class TokenExpiredError(ValidationError):
    error_code = "TOKEN_EXPIRED"
    default_message = "Reset token has expired"


# 401
class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHENTICATED"
    default_message = "Invalid authentication credentials"


class InvalidPasswordError(AuthenticationError):
    error_code = "INVALID_PASSWORD"
    default_message = "Invalid password"


# 403
class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"
    default_message = "Not authorized to access this resource"


class AccountDeactivatedError(AuthorizationError):
    error_code = "ACCOUNT_DEACTIVATED"
    default_message = "User account is inactive. Please contact your administrator."


class RoleMismatchError(AuthorizationError):
    error_code = "ROLE_MISMATCH"


# 404
class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"
    default_message = "Resource not found"


class AccountNotFoundError(NotFoundError):
    error_code = "ACCOUNT_NOT_FOUND"
    default_message = "No account found with this email"


# 409 (locked entries answer 403)
class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"
    default_message = "Resource conflict"


class EntryLockedError(ConflictError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "ENTRY_LOCKED"
    default_message = "This time entry is locked and cannot be modified"


# 500
class UpstreamError(AppError):
    error_code = "UPSTREAM_ERROR"
    default_message = "Upstream service error"


class EmailDeliveryError(UpstreamError):
    error_code = "EMAIL_DELIVERY_FAILED"


def error_body(message: str, error_code: str | None = None, **extra) -> dict:
    body = {"success": False, "message": message}
    if error_code:
        body["errorCode"] = error_code
    body.update(extra)
    return body


async def _app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    message = exc.message
    if isinstance(exc, UpstreamError):
        logger.error(f"Upstream failure ({exc.error_code}): {exc.message}")
        message = UpstreamError.default_message
    return JSONResponse(status_code=exc.status_code, content=error_body(message, exc.error_code))


async def _validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part != "body"),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            errors[0]["message"] if errors else ValidationError.default_message,
            ValidationError.error_code,
            errors=errors,
        ),
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal database error", UpstreamError.error_code),
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(AppError, _app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, _validation_error_handler  # type: ignore[arg-type]
    )
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
