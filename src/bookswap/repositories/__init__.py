"""Data access layer.

This module provides data access repositories for database operations
with proper error handling and type safety.
"""

from .auth_session_repository import AuthSessionRepository, AuthSessionRepositoryError
from .book_repository import BookAccessDeniedError, BookNotFoundError, BookRepository
from .exchange_request_repository import (
    BookNoLongerAvailableError,
    ExchangeRequestNotFoundError,
    ExchangeRequestRepository,
)
from .user_repository import UserAlreadyExistsError, UserRepository, UserRepositoryError

__all__ = [
    "AuthSessionRepository",
    "AuthSessionRepositoryError",
    "BookRepository",
    "BookNotFoundError",
    "BookAccessDeniedError",
    "ExchangeRequestRepository",
    "ExchangeRequestNotFoundError",
    "BookNoLongerAvailableError",
    "UserRepository",
    "UserRepositoryError",
    "UserAlreadyExistsError",
]
