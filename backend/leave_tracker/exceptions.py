import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import DBAPIError, IntegrityError

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    category: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    category = "AppError"

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class ValidationError(AppError):
    """Malformed input: bad date range, past date, unknown leave type."""

    category = "ValidationError"

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> None:
        super().__init__(message, status_code)


class BusinessRuleViolation(AppError):
    """Well-formed input that the current state of the records does not permit."""

    category = "BusinessRuleViolation"

    def __init__(self, message: str, status_code: int = status.HTTP_409_CONFLICT) -> None:
        super().__init__(message, status_code)


class AuthorizationError(AppError):
    """The actor may not perform this operation on this subject."""

    category = "AuthorizationError"

    def __init__(self, message: str, status_code: int = status.HTTP_403_FORBIDDEN) -> None:
        super().__init__(message, status_code)


class NotFoundError(AppError):
    category = "NotFoundError"

    def __init__(self, message: str, status_code: int = status.HTTP_404_NOT_FOUND) -> None:
        super().__init__(message, status_code)


class StorageError(AppError):
    """Transient record-store failure. The only category a caller should retry."""

    category = "StorageError"

    def __init__(self, message: str, status_code: int = status.HTTP_503_SERVICE_UNAVAILABLE) -> None:
        super().__init__(message, status_code)


# ---------------------------------------------------------------------------
# Concrete kinds
# ---------------------------------------------------------------------------


class InvalidDateRange(ValidationError):
    pass


class PastDateNotAllowed(ValidationError):
    pass


class InvalidLeaveType(ValidationError):
    pass


class InsufficientBalance(BusinessRuleViolation):
    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class OverlappingRequest(BusinessRuleViolation):
    pass


class InvalidStateTransition(BusinessRuleViolation):
    pass


class DuplicateRecord(BusinessRuleViolation):
    pass


class NotOwner(AuthorizationError):
    pass


class NotAuthorized(AuthorizationError):
    pass


class NotAuthenticated(AuthorizationError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED)


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            category=exc.category,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="RequestValidationError",
            category=ValidationError.category,
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


async def _storage_exception_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    """Driver failures that escaped the service layer still answer with a retryable 503."""
    if isinstance(exc, IntegrityError):
        raise exc
    logger.warning("%s %s failed against the record store: %s", request.method, request.url.path, exc.orig)
    return await _app_exception_handler(request, StorageError("The record store is temporarily unavailable"))


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DBAPIError, _storage_exception_handler)  # type: ignore[arg-type]
