"""Middleware for security headers and authentication context.

This module provides FastAPI middleware that adds security headers to every
response and exposes the bearer token's user on ``request.state`` without
enforcing authentication.
"""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .config import get_settings
from .logging_config import get_logger
from .services.auth_service import AuthService, JWTError

logger = get_logger("middleware")

# Interactive docs load scripts and styles from a CDN
DOCS_PATHS = ("/docs", "/redoc", "/openapi.json")


class AuthenticationContextMiddleware(BaseHTTPMiddleware):
    """Middleware for adding authentication context to requests.

    This middleware decodes JWT tokens from requests, adding the user ID to
    the request state for logging. It does not enforce authentication or
    check the login session; that's handled by dependencies.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self.auth_service = AuthService(get_settings())

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.user_id = None
        request.state.is_authenticated = False

        authorization = request.headers.get("authorization")
        if authorization:
            try:
                user_id, _ = self.auth_service.decode_authorization(authorization)
                request.state.user_id = user_id
                request.state.is_authenticated = True
            except JWTError as e:
                # Endpoint dependencies decide whether this matters
                logger.debug(f"Ignoring unusable bearer token: {e.message}")

        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware for adding security headers.

    This middleware adds common security headers to all responses
    to improve application security posture.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Add security headers to response.

        Args:
            request: HTTP request
            call_next: Next middleware/endpoint in chain

        Returns:
            Response: HTTP response with security headers
        """
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if not request.url.path.startswith(DOCS_PATHS):
            response.headers["Content-Security-Policy"] = "default-src 'none'"

        return response
