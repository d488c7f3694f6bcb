"""Custom exception classes and global exception handlers.

This module defines the API exception hierarchy and the FastAPI handlers that
render every error as ``{"error": {"code", "message", "status_code", ...}}``.
Request validation failures are reported as 400 Bad Request.
"""

from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging_config import get_logger

logger = get_logger("exceptions")


class APIException(Exception):
    """Base exception class for API errors.

    Subclasses fix the HTTP status code and machine-readable error code so
    handlers can render them uniformly.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize API exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code for the error
            error_code: Machine-readable error code
            details: Additional error details
        """
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or self.__class__.__name__.lower().replace(
            "exception", "_error"
        )
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(APIException):
    """Exception for input validation errors."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {}
        if field:
            details["field"] = field

        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="validation_error",
            details=details,
        )


class AuthenticationException(APIException):
    """Exception for authentication errors."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="authentication_error",
        )


class NotFoundException(APIException):
    """Exception for resource not found errors."""

    def __init__(
        self, resource: str, identifier: str | int, message: str | None = None
    ) -> None:
        if not message:
            message = f"{resource} with identifier '{identifier}' not found"

        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="not_found_error",
            details={"resource": resource, "identifier": str(identifier)},
        )


class ExternalServiceException(APIException):
    """Exception for failures of services we depend on (identity provider)."""

    def __init__(
        self,
        message: str,
        service: str,
        status_code: int = status.HTTP_503_SERVICE_UNAVAILABLE,
    ) -> None:
        super().__init__(
            message=message,
            status_code=status_code,
            error_code="external_service_error",
            details={"service": service},
        )


def create_error_response(
    status_code: int,
    message: str,
    error_code: str,
    details: dict[str, Any] | None = None,
    request_id: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Create standardized error response.

    Args:
        status_code: HTTP status code
        message: Error message
        error_code: Machine-readable error code
        details: Additional error details
        request_id: Request ID for tracking
        headers: Extra response headers (e.g. ``WWW-Authenticate``)

    Returns:
        JSONResponse: Standardized error response
    """
    error_data = {
        "error": {"code": error_code, "message": message, "status_code": status_code}
    }

    if details:
        error_data["error"]["details"] = details

    if request_id:
        error_data["error"]["request_id"] = request_id

    return JSONResponse(status_code=status_code, content=error_data, headers=headers)


def _error_code_for_status(status_code: int) -> str:
    return {
        status.HTTP_400_BAD_REQUEST: "bad_request",
        status.HTTP_401_UNAUTHORIZED: "authentication_error",
        status.HTTP_403_FORBIDDEN: "authorization_error",
        status.HTTP_404_NOT_FOUND: "not_found_error",
        status.HTTP_409_CONFLICT: "conflict_error",
        status.HTTP_503_SERVICE_UNAVAILABLE: "external_service_error",
    }.get(status_code, "http_error")


# Global Exception Handlers


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Handle custom API exceptions.

    Args:
        request: FastAPI request object
        exc: API exception instance

    Returns:
        JSONResponse: Standardized error response
    """
    logger.warning(
        f"API Exception: {exc.error_code} - {exc.message}",
        extra={
            "error_code": exc.error_code,
            "status_code": exc.status_code,
            "details": exc.details,
            "path": request.url.path,
            "method": request.method,
        },
    )

    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}

    return create_error_response(
        status_code=exc.status_code,
        message=exc.message,
        error_code=exc.error_code,
        details=exc.details,
        request_id=getattr(request.state, "request_id", None),
        headers=headers,
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP exceptions raised by routers and by routing itself.

    Args:
        request: FastAPI request object
        exc: HTTP exception instance

    Returns:
        JSONResponse: Standardized error response
    """
    logger.warning(
        f"HTTP Exception: {exc.status_code} - {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return create_error_response(
        status_code=exc.status_code,
        message=str(exc.detail),
        error_code=_error_code_for_status(exc.status_code),
        request_id=getattr(request.state, "request_id", None),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors as 400 Bad Request.

    Args:
        request: FastAPI request object
        exc: Validation error instance

    Returns:
        JSONResponse: Standardized error response with validation details
    """
    validation_errors = []
    for error in exc.errors():
        field_path = " -> ".join(str(loc) for loc in error["loc"])
        validation_errors.append(
            {
                "field": field_path,
                "message": error["msg"],
                "type": error["type"],
            }
        )

    logger.warning(
        f"Validation Error: {len(validation_errors)} field(s) failed validation",
        extra={
            "validation_errors": validation_errors,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return create_error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        message="Validation failed",
        error_code="validation_error",
        details={"validation_errors": validation_errors},
        request_id=getattr(request.state, "request_id", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions.

    Args:
        request: FastAPI request object
        exc: Exception instance

    Returns:
        JSONResponse: Generic error response
    """
    logger.error(
        f"Unexpected Exception: {type(exc).__name__} - {str(exc)}",
        exc_info=True,
        extra={
            "exception_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        },
    )

    # Internal details never leave the server
    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="Internal server error",
        error_code="internal_error",
        request_id=getattr(request.state, "request_id", None),
    )
