"""User model backed by the external identity provider.

This module defines the User SQLModel for storing users authenticated through
the OpenID Connect provider, with proper type hints and database constraints.
"""

from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from sqlmodel import SQLModel, Field, Column, String, DateTime, Index, Relationship
from sqlalchemy import func

if TYPE_CHECKING:
    from .book import Book
    from .exchange_request import ExchangeRequest


class UserBase(SQLModel):
    """Base user model with common fields."""

    subject: str = Field(
        max_length=255,
        description="Identity provider subject (unique identifier from the provider)",
        index=True
    )
    email: Optional[str] = Field(
        default=None,
        max_length=255,
        description="User's email address"
    )
    first_name: Optional[str] = Field(
        default=None,
        max_length=100,
        description="User's given name"
    )
    last_name: Optional[str] = Field(
        default=None,
        max_length=100,
        description="User's family name"
    )
    profile_image_url: Optional[str] = Field(
        default=None,
        max_length=500,
        description="URL to user's profile picture"
    )


class User(UserBase, table=True):
    """User model for database storage.

    A user is created the first time they log in and refreshed from the
    identity provider's profile on every later login.

    Attributes:
        id: Primary key (auto-generated)
        subject: Unique identity provider subject
        email: Optional unique email address
        first_name: Optional given name
        last_name: Optional family name
        profile_image_url: Optional profile picture URL
        created_at: Timestamp when user was created
        updated_at: Timestamp when user was last updated
    """

    __tablename__ = "users"

    id: Optional[int] = Field(
        default=None,
        primary_key=True,
        description="Primary key (auto-generated)"
    )

    # Override subject and email to add unique constraints
    subject: str = Field(
        max_length=255,
        description="Identity provider subject",
        sa_column=Column(String(255), unique=True, nullable=False, index=True)
    )
    email: Optional[str] = Field(
        default=None,
        max_length=255,
        description="User's email address",
        sa_column=Column(String(255), unique=True, nullable=True)
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Timestamp when user was created",
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )

    updated_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp when user was last updated",
        sa_column=Column(DateTime(timezone=True), onupdate=func.now())
    )

    books: List["Book"] = Relationship(back_populates="owner", sa_relationship_kwargs={"lazy": "select"})
    sent_requests: List["ExchangeRequest"] = Relationship(
        back_populates="requester", sa_relationship_kwargs={"lazy": "select"}
    )

    __table_args__ = (
        Index("idx_users_created_at", "created_at"),
    )

    @property
    def display_name(self) -> str:
        """Full name when known, otherwise the email or subject."""
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or self.email or self.subject


class UserUpsert(UserBase):
    """Schema for creating or refreshing a user from identity provider claims."""
    pass


class UserResponse(UserBase):
    """Schema for user API responses."""

    id: int = Field(description="User ID")
    created_at: datetime = Field(description="User creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Last update timestamp")
