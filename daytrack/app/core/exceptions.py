"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes, database error classification and
global exception handlers.
"""

import logging
import socket
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import DBAPIError
from typing import Any, Dict, Optional, Tuple

from daytrack.app.core.config import settings

logger = logging.getLogger(__name__)

CONNECTION_ERROR_TYPES = (ConnectionError, TimeoutError, socket.gaierror)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InvalidRequestError(AppException):
    """Raised for missing or malformed request parameters."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_BAD_REQUEST",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class InvalidOperationError(AppException):
    """Raised when an operation is not allowed in the current state."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_INVALID_OPERATION",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class HealthcheckUnauthorizedError(AppException):
    """Raised when the healthcheck token does not match."""

    def __init__(self):
        super().__init__(
            message="Unauthorized",
            error_code="ERR_UNAUTHORIZED",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class DatabaseNotConfiguredError(AppException):
    """Raised when the driver database has no usable configuration."""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(
            message=reason or "Database not configured",
            error_code="ERR_DB_UNCONFIGURED",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )


class DatabaseUnavailableError(AppException):
    """Raised when the database cannot be reached."""

    def __init__(self, message: str = "Database not reachable"):
        super().__init__(
            message=message,
            error_code="ERR_DB_UNAVAILABLE",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )


def _find_connection_error(exc: BaseException) -> Optional[BaseException]:
    """Walk the exception chain looking for a connectivity failure."""
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, CONNECTION_ERROR_TYPES):
            return current
        if isinstance(current, DBAPIError):
            if current.connection_invalidated:
                return current
            if isinstance(current.orig, CONNECTION_ERROR_TYPES):
                return current.orig
        current = current.__cause__ or current.__context__
    return None


def classify_db_error(exc: BaseException, production: bool = False) -> Tuple[str, int]:
    """
    Classify a database failure into (message, HTTP status).

    Connectivity failures map to 503 with a diagnostic message. Anything else
    is a 500 whose message is only surfaced outside production.
    """
    connection_error = _find_connection_error(exc)
    if connection_error is not None:
        return (
            f"Database connection failed ({type(connection_error).__name__}). "
            "Check DRIVER_DATABASE_URL and that the database is running.",
            status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    if not production:
        return str(exc), status.HTTP_500_INTERNAL_SERVER_ERROR
    return "", status.HTTP_500_INTERNAL_SERVER_ERROR


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        500: "ERR_INTERNAL_SERVER",
        503: "ERR_SERVICE_UNAVAILABLE"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_errors(exc)
            }
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances that are not JSON serializable
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


async def database_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for database and connectivity failures."""
    message, status_code = classify_db_error(exc, production=settings.is_production)
    logger.error(
        "Database error on %s %s [%s]: %s: %s",
        request.method, request.url.path,
        getattr(request.state, "correlation_id", "-"), type(exc).__name__, exc,
    )

    if status_code == status.HTTP_503_SERVICE_UNAVAILABLE:
        error_code = "ERR_DB_UNAVAILABLE"
    else:
        error_code = "ERR_DB_QUERY"

    return JSONResponse(
        status_code=status_code,
        content={
            "error_code": error_code,
            "message": message or "A database error occurred",
            "details": {}
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception: %s: %s", type(exc).__name__, exc)

    details = {}
    if not settings.is_production:
        details = {"exception": type(exc).__name__, "reason": str(exc)}

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": details
        }
    )
