"""Exchange request model.

This module defines the ExchangeRequest SQLModel linking a requesting user to
a listed book, together with the status values of the exchange workflow.
"""

from enum import Enum
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from sqlmodel import SQLModel, Field, Column, String, DateTime, Relationship, Index
from sqlalchemy import Text, func

if TYPE_CHECKING:
    from .user import User
    from .book import Book


class ExchangeStatus(str, Enum):
    """Status of an exchange request."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETED = "completed"


class ExchangeRequest(SQLModel, table=True):
    """Exchange request model for database storage.

    Attributes:
        id: Primary key (auto-generated)
        requester_id: Foreign key to the user asking for the book
        book_id: Foreign key to the requested book
        status: Workflow status (pending, accepted, rejected, completed)
        message: Optional note from the requester to the owner
        created_at: Timestamp when request was created
        updated_at: Timestamp when request status last changed
    """

    __tablename__ = "exchange_requests"

    id: Optional[int] = Field(
        default=None,
        primary_key=True,
        description="Primary key (auto-generated)"
    )

    requester_id: int = Field(
        foreign_key="users.id",
        description="ID of the user who sent the request",
        index=True
    )
    book_id: int = Field(
        foreign_key="books.id",
        description="ID of the requested book",
        index=True
    )

    status: str = Field(
        default=ExchangeStatus.PENDING.value,
        description="Workflow status",
        sa_column=Column(String(20), nullable=False, default=ExchangeStatus.PENDING.value)
    )
    message: Optional[str] = Field(
        default=None,
        description="Optional message to the book owner",
        sa_column=Column(Text, nullable=True)
    )

    requester: Optional["User"] = Relationship(
        back_populates="sent_requests", sa_relationship_kwargs={"lazy": "select"}
    )
    book: Optional["Book"] = Relationship(
        back_populates="exchange_requests", sa_relationship_kwargs={"lazy": "select"}
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Timestamp when request was created",
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )

    updated_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp when request was last updated",
        sa_column=Column(DateTime(timezone=True), onupdate=func.now())
    )

    __table_args__ = (
        Index("idx_exchange_requests_requester_created", "requester_id", "created_at"),
        Index("idx_exchange_requests_book_status", "book_id", "status"),
    )


class ExchangeRequestCreate(SQLModel):
    """Schema for creating an exchange request."""

    book_id: int = Field(gt=0, description="ID of the requested book")
    message: Optional[str] = Field(default=None, max_length=1000, description="Message to the owner")
