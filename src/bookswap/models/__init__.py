"""SQLModel data models.

This module exports all database models and schemas for the BookSwap API.
Import models from here to ensure proper initialization and relationships.
"""

from .auth_session import AuthSession
from .book import Book, BookBase, BookCondition, BookCreate, BookUpdate
from .exchange_request import ExchangeRequest, ExchangeRequestCreate, ExchangeStatus
from .user import User, UserBase, UserResponse, UserUpsert

__all__ = [
    # User models
    "User",
    "UserBase",
    "UserUpsert",
    "UserResponse",
    # Session models
    "AuthSession",
    # Book models
    "Book",
    "BookBase",
    "BookCondition",
    "BookCreate",
    "BookUpdate",
    # Exchange request models
    "ExchangeRequest",
    "ExchangeRequestCreate",
    "ExchangeStatus",
]
