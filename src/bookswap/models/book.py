"""Book model with owner relationships.

This module defines the Book SQLModel for storing listed books with user
ownership, availability tracking, and database relationships.
"""

from enum import Enum
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from sqlmodel import SQLModel, Field, Column, String, DateTime, Relationship, Index
from sqlalchemy import Boolean, Text, func, true

if TYPE_CHECKING:
    from .user import User
    from .exchange_request import ExchangeRequest


class BookCondition(str, Enum):
    """Physical condition of a listed book."""

    LIKE_NEW = "like-new"
    GOOD = "good"
    FAIR = "fair"


class BookBase(SQLModel):
    """Base book model with common fields."""

    title: str = Field(
        max_length=255,
        min_length=1,
        description="Book title (required, 1-255 characters)"
    )
    author: str = Field(
        max_length=255,
        min_length=1,
        description="Book author (required, 1-255 characters)"
    )
    genre: str = Field(
        max_length=100,
        min_length=1,
        description="Book genre (required, 1-100 characters)"
    )
    condition: BookCondition = Field(description="Physical condition of the book")
    description: Optional[str] = Field(
        default=None,
        max_length=2000,
        description="Book description (optional, max 2000 characters)"
    )


class Book(BookBase, table=True):
    """Book model for database storage.

    Each book belongs to exactly one user. Only available books are shown in
    the public listing and may receive new exchange requests.

    Attributes:
        id: Primary key (auto-generated)
        title: Book title
        author: Book author
        genre: Book genre
        condition: Physical condition (like-new, good, fair)
        description: Optional description
        cover_image_url: Optional public URL of the uploaded cover
        owner_id: Foreign key to the owning user
        is_available: Whether the book accepts new exchange requests
        created_at: Timestamp when book was created
        updated_at: Timestamp when book was last updated
    """

    __tablename__ = "books"

    id: Optional[int] = Field(
        default=None,
        primary_key=True,
        description="Primary key (auto-generated)"
    )

    # Stored as plain strings so the column stays portable across engines
    condition: BookCondition = Field(
        description="Physical condition of the book",
        sa_column=Column(String(20), nullable=False)
    )
    description: Optional[str] = Field(
        default=None,
        description="Book description",
        sa_column=Column(Text, nullable=True)
    )

    cover_image_url: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Public URL of the uploaded cover image"
    )

    owner_id: int = Field(
        foreign_key="users.id",
        description="ID of the user who owns this book",
        index=True
    )

    is_available: bool = Field(
        default=True,
        description="Whether the book is open for exchange requests",
        sa_column=Column(Boolean, nullable=False, default=True, server_default=true())
    )

    owner: Optional["User"] = Relationship(back_populates="books", sa_relationship_kwargs={"lazy": "select"})
    exchange_requests: List["ExchangeRequest"] = Relationship(
        back_populates="book",
        sa_relationship_kwargs={"lazy": "select", "cascade": "all, delete-orphan"}
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Timestamp when book was created",
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )

    updated_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp when book was last updated",
        sa_column=Column(DateTime(timezone=True), onupdate=func.now())
    )

    __table_args__ = (
        Index("idx_books_available_created", "is_available", "created_at"),
        Index("idx_books_owner_created", "owner_id", "created_at"),
        Index("idx_books_genre", "genre"),
    )


class BookCreate(BookBase):
    """Schema for creating a new book.

    The owner is taken from the authenticated user and the cover URL from the
    upload storage, never from the request body.
    """

    cover_image_url: Optional[str] = Field(default=None, max_length=500)


class BookUpdate(SQLModel):
    """Schema for updating book information.

    All fields are optional to support partial updates.
    """

    title: Optional[str] = Field(default=None, max_length=255, min_length=1)
    author: Optional[str] = Field(default=None, max_length=255, min_length=1)
    genre: Optional[str] = Field(default=None, max_length=100, min_length=1)
    condition: Optional[BookCondition] = Field(default=None)
    description: Optional[str] = Field(default=None, max_length=2000)
    cover_image_url: Optional[str] = Field(default=None, max_length=500)
    is_available: Optional[bool] = Field(default=None)
