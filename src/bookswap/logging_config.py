"""Logging configuration for structured logging.

This module provides structured logging configuration with proper log levels,
request/response logging middleware, security and database event helpers,
and configurable log formatting.
"""

import json
import logging
import logging.config
import sys
import time
import uuid
from datetime import datetime
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .config import Settings

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_RECORD_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "getMessage",
    "exc_info",
    "exc_text",
    "stack_info",
    "message",
}


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Outputs log records as JSON objects with timestamp, level, message,
    source location, and any extra context passed by the caller.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON formatted log string
        """
        log_data: dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_ATTRS and value is not None
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, default=str, ensure_ascii=False)


class RequestContextFilter(logging.Filter):
    """Logging filter that guarantees request context attributes exist.

    Records logged outside a request get ``None`` for request ID, client IP,
    user ID, path and method, so formatters can rely on the attributes.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = getattr(record, "request_id", None)
        record.client_ip = getattr(record, "client_ip", None)
        record.user_id = getattr(record, "user_id", None)
        record.path = getattr(record, "path", None)
        record.method = getattr(record, "method", None)
        return True


def setup_logging(settings: Settings) -> None:
    """Setup logging configuration based on settings.

    Args:
        settings: Application settings containing logging configuration
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    formatter = "simple" if settings.debug else "json"

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": JSONFormatter,
            },
            "simple": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "filters": {
            "request_context": {
                "()": RequestContextFilter,
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": formatter,
                "filters": ["request_context"],
                "stream": sys.stdout,
            }
        },
        "loggers": {
            "bookswap": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False,
            },
            "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.access": {
                "level": "INFO" if settings.debug else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "INFO" if settings.debug else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
            "sqlalchemy.pool": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
            "httpx": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            "httpcore": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
    }

    logging.config.dictConfig(logging_config)

    logging.getLogger("bookswap").info(
        "Logging configured",
        extra={
            "log_level": settings.log_level,
            "debug_mode": settings.debug,
            "formatter": formatter,
        },
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging.

    Assigns every request an ID (echoed back as ``X-Request-ID``) and logs
    start, completion and failure with timing information.
    """

    def __init__(self, app: ASGIApp, logger_name: str = "bookswap.requests") -> None:
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        client_ip = request.client.host if request.client else None
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            client_ip = forwarded_for.split(",")[0].strip()

        start_time = time.time()

        self.logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "query_params": dict(request.query_params),
                "client_ip": client_ip,
                "user_agent": request.headers.get("User-Agent"),
                "content_type": request.headers.get("Content-Type"),
                "event_type": "request_started",
            },
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            process_time = time.time() - start_time
            self.logger.error(
                f"Request failed: {request.method} {request.url.path} - {type(exc).__name__}",
                exc_info=True,
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "exception_type": type(exc).__name__,
                    "process_time": round(process_time, 4),
                    "client_ip": client_ip,
                    "event_type": "request_failed",
                },
            )
            raise

        process_time = time.time() - start_time
        self.logger.info(
            f"Request completed: {request.method} {request.url.path} - {response.status_code}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "process_time": round(process_time, 4),
                "client_ip": client_ip,
                "user_id": getattr(request.state, "user_id", None),
                "event_type": "request_completed",
            },
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response


class SecurityLoggingMixin:
    """Mixin for security-related logging.

    Provides methods for logging authentication attempts and authorization
    failures to the ``bookswap.security`` logger.
    """

    def __init__(self) -> None:
        self.security_logger = logging.getLogger("bookswap.security")

    def log_authentication_attempt(
        self,
        user_id: int | None = None,
        subject: str | None = None,
        success: bool = True,
        reason: str | None = None,
    ) -> None:
        """Log authentication attempt.

        Args:
            user_id: Internal user ID
            subject: Identity provider subject
            success: Whether authentication was successful
            reason: Reason for failure (if applicable)
        """
        level = logging.INFO if success else logging.WARNING
        message = (
            "Authentication successful"
            if success
            else f"Authentication failed: {reason}"
        )

        self.security_logger.log(
            level,
            message,
            extra={
                "event_type": "authentication_attempt",
                "user_id": user_id,
                "subject": subject,
                "success": success,
                "reason": reason,
            },
        )

    def log_authorization_failure(
        self,
        user_id: int | None = None,
        resource: str | None = None,
        action: str | None = None,
        reason: str | None = None,
    ) -> None:
        """Log authorization failure.

        Args:
            user_id: User ID attempting access
            resource: Resource being accessed
            action: Action being attempted
            reason: Reason for denial
        """
        self.security_logger.warning(
            f"Authorization denied: {reason}",
            extra={
                "event_type": "authorization_failure",
                "user_id": user_id,
                "resource": resource,
                "action": action,
                "reason": reason,
            },
        )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance under the ``bookswap`` namespace.

    Args:
        name: Logger name (prefixed with 'bookswap.' when missing)

    Returns:
        Logger instance
    """
    if not name.startswith("bookswap."):
        name = f"bookswap.{name}"

    return logging.getLogger(name)


def log_database_operation(
    operation: str,
    table: str,
    success: bool = True,
    duration: float | None = None,
    error: str | None = None,
    **kwargs,
) -> None:
    """Log database operation.

    Args:
        operation: Type of operation (SELECT, INSERT, UPDATE, DELETE)
        table: Database table name
        success: Whether operation was successful
        duration: Operation duration in seconds
        error: Error message (if applicable)
        **kwargs: Additional context data
    """
    logger = get_logger("database")
    level = logging.INFO if success else logging.ERROR
    message = f"Database {operation} on {table}"

    if not success and error:
        message += f" failed: {error}"

    extra_data = {
        "event_type": "database_operation",
        "operation": operation,
        "table": table,
        "success": success,
        "duration": duration,
    }

    if error:
        extra_data["error"] = error

    extra_data.update(kwargs)

    logger.log(level, message, extra=extra_data)


def log_external_api_call(
    service: str,
    endpoint: str,
    method: str = "GET",
    status_code: int | None = None,
    duration: float | None = None,
    success: bool = True,
    error: str | None = None,
) -> None:
    """Log a call to an external HTTP service.

    Args:
        service: External service name
        endpoint: API endpoint
        method: HTTP method
        status_code: Response status code
        duration: Request duration in seconds
        success: Whether request was successful
        error: Error message (if applicable)
    """
    logger = get_logger("external_api")
    level = logging.INFO if success else logging.ERROR
    message = f"External API call to {service}: {method} {endpoint}"

    if status_code:
        message += f" - {status_code}"

    if not success and error:
        message += f" failed: {error}"

    extra_data = {
        "event_type": "external_api_call",
        "service": service,
        "endpoint": endpoint,
        "http_method": method,
        "status_code": status_code,
        "duration": duration,
        "success": success,
    }

    if error:
        extra_data["error"] = error

    logger.log(level, message, extra=extra_data)
