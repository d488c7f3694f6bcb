"""Business logic layer.

This module exports the services used by the routers.
"""

from .auth_service import AuthenticationError, AuthService, IdentityProviderError, JWTError
from .book_service import BookService, BookServiceError
from .cover_storage import CoverStorage, UploadValidationError
from .exchange_service import ExchangeService, ExchangeServiceError
from .user_service import UserService, UserServiceError

__all__ = [
    "AuthService",
    "AuthenticationError",
    "IdentityProviderError",
    "JWTError",
    "BookService",
    "BookServiceError",
    "CoverStorage",
    "UploadValidationError",
    "ExchangeService",
    "ExchangeServiceError",
    "UserService",
    "UserServiceError",
]
