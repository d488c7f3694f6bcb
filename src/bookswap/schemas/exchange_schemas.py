"""Exchange request schemas.

This module defines Pydantic schemas for creating exchange requests,
changing their status, and returning them with requester and book details.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.exchange_request import ExchangeStatus
from .book_schemas import BookWithOwner, UserSummary


class ExchangeRequestCreateRequest(BaseModel):
    """Schema for requesting an exchange on someone else's book."""

    book_id: int = Field(..., gt=0, description="ID of the requested book", examples=[42])
    message: str | None = Field(
        default=None,
        max_length=1000,
        description="Optional note to the book owner",
        examples=["Happy to swap for any of my sci-fi titles"],
    )

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str | None) -> str | None:
        """Return None if message is empty after stripping."""
        if v is not None:
            v = v.strip()
            if not v:
                return None
        return v


class StatusUpdateRequest(BaseModel):
    """Schema for changing an exchange request's status.

    The value is validated by the exchange service so that unknown statuses
    are reported with the list of accepted values.
    """

    status: str = Field(..., description="accepted, rejected or completed", examples=["accepted"])


class ExchangeRequestResponse(BaseModel):
    """Schema for exchange request API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., gt=0, description="Exchange request ID")
    requester_id: int = Field(..., gt=0, description="ID of the requesting user")
    book_id: int = Field(..., gt=0, description="ID of the requested book")
    status: ExchangeStatus = Field(..., description="Workflow status")
    message: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class ExchangeRequestWithDetails(ExchangeRequestResponse):
    """Exchange request with its requester and the book (including its owner)."""

    requester: UserSummary
    book: BookWithOwner
