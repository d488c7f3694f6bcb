"""Pydantic schemas for API validation and serialization.

This module exports all API schemas for authentication, books and exchange
requests.
"""

from .auth_schemas import (
    IdentityProfile,
    JWTPayload,
    LoginRequest,
    LoginResponse,
    LoginStatus,
    TokenResponse,
    TokenType,
)
from .book_schemas import (
    BookCreateRequest,
    BookListRequest,
    BookListResponse,
    BookResponse,
    BookStats,
    BookUpdateRequest,
    BookWithOwner,
    UserSummary,
)
from .exchange_schemas import (
    ExchangeRequestCreateRequest,
    ExchangeRequestResponse,
    ExchangeRequestWithDetails,
    StatusUpdateRequest,
)

__all__ = [
    # Authentication schemas
    "LoginRequest",
    "IdentityProfile",
    "JWTPayload",
    "TokenResponse",
    "TokenType",
    "LoginStatus",
    "LoginResponse",
    # Book schemas
    "BookCreateRequest",
    "BookUpdateRequest",
    "BookResponse",
    "BookWithOwner",
    "BookListRequest",
    "BookListResponse",
    "BookStats",
    "UserSummary",
    # Exchange request schemas
    "ExchangeRequestCreateRequest",
    "ExchangeRequestResponse",
    "ExchangeRequestWithDetails",
    "StatusUpdateRequest",
]
