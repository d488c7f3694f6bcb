"""FastAPI dependencies for authentication and database access.

This module provides dependency injection functions for FastAPI endpoints,
including authentication, database sessions, and service instances.
"""

from typing import Annotated

from fastapi import Depends, Header, Request
from sqlmodel import Session

from .config import Settings, get_settings
from .database import get_session
from .exceptions import AuthenticationException
from .models.user import UserResponse
from .services.auth_service import AuthService, JWTError
from .services.book_service import BookService
from .services.cover_storage import CoverStorage
from .services.exchange_service import ExchangeService
from .services.user_service import UserService


def get_app_settings() -> Settings:
    """Get application settings.

    Returns:
        Settings: Application configuration
    """
    return get_settings()


def get_auth_service(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> AuthService:
    """Get authentication service instance."""
    return AuthService(settings)


def get_user_service(session: Annotated[Session, Depends(get_session)]) -> UserService:
    """Get user service instance."""
    return UserService(session)


def get_cover_storage(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> CoverStorage:
    """Get cover image storage rooted at the configured upload directory."""
    return CoverStorage(settings.upload_dir, settings.max_upload_bytes)


def get_book_service(
    session: Annotated[Session, Depends(get_session)],
    storage: Annotated[CoverStorage, Depends(get_cover_storage)],
) -> BookService:
    return BookService(session, storage)


def get_exchange_service(session: Annotated[Session, Depends(get_session)]) -> ExchangeService:
    return ExchangeService(session)


async def get_current_session(
    request: Request,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    authorization: Annotated[str | None, Header()] = None,
) -> tuple[int, str]:
    """Authenticate the request and return ``(user_id, session_id)``.

    The bearer token must carry a valid signature and expiry, and its login
    session must still exist (i.e. the user has not logged out).

    Raises:
        AuthenticationException: If any of those checks fail
    """
    try:
        user_id, session_id = auth_service.decode_authorization(authorization)
    except JWTError as e:
        auth_service.log_authentication_attempt(success=False, reason=e.message)
        raise AuthenticationException(e.message) from e

    if not user_service.is_session_active(session_id, user_id):
        auth_service.log_authentication_attempt(
            user_id=user_id, success=False, reason="session ended or expired"
        )
        raise AuthenticationException("Session has ended, please log in again")

    request.state.user_id = user_id
    return user_id, session_id


async def get_current_user_id(
    current_session: Annotated[tuple[int, str], Depends(get_current_session)],
) -> int:
    """Get current user ID from an authenticated request."""
    return current_session[0]


async def get_current_user(
    user_id: Annotated[int, Depends(get_current_user_id)],
    user_service: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    """Get current authenticated user.

    Raises:
        AuthenticationException: If the token's user no longer exists
    """
    user = await user_service.get_user_by_id(user_id)
    if not user:
        raise AuthenticationException("User not found")
    return user


# Type aliases for common dependency patterns
CurrentUser = Annotated[UserResponse, Depends(get_current_user)]
CurrentUserId = Annotated[int, Depends(get_current_user_id)]
CurrentSession = Annotated[tuple[int, str], Depends(get_current_session)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
BookServiceDep = Annotated[BookService, Depends(get_book_service)]
ExchangeServiceDep = Annotated[ExchangeService, Depends(get_exchange_service)]
DatabaseSession = Annotated[Session, Depends(get_session)]
