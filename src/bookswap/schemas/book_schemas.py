"""Book schemas for CRUD operations and API responses.

This module defines Pydantic schemas for book-related API operations,
including listing filters, creation and update input, owner summaries,
and paginated responses.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.book import BookCondition


def _clean_text(v: str | None) -> str | None:
    if v is None:
        return None
    return " ".join(v.split())


class BookCreateRequest(BaseModel):
    """Schema for creating a new book.

    Built from the multipart form of ``POST /api/books``. Title, author and
    genre must contain non-whitespace characters.
    """

    title: str = Field(..., max_length=255, description="Book title", examples=["Dune"])
    author: str = Field(..., max_length=255, description="Book author", examples=["Frank Herbert"])
    genre: str = Field(..., max_length=100, description="Book genre", examples=["Science Fiction"])
    condition: BookCondition = Field(..., description="Physical condition", examples=["good"])
    description: str | None = Field(default=None, max_length=2000, description="Optional description")

    @field_validator("title", "author", "genre")
    @classmethod
    def validate_required_text(cls, v: str) -> str:
        """Reject blank values and collapse whitespace."""
        v = _clean_text(v)
        if not v:
            raise ValueError("Field cannot be empty or whitespace only")
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str | None) -> str | None:
        """Return None if description is empty after cleaning."""
        return _clean_text(v) or None


class BookUpdateRequest(BaseModel):
    """Schema for updating book information.

    All fields are optional to support partial updates.
    """

    title: str | None = Field(default=None, max_length=255)
    author: str | None = Field(default=None, max_length=255)
    genre: str | None = Field(default=None, max_length=100)
    condition: BookCondition | None = None
    description: str | None = Field(default=None, max_length=2000)
    is_available: bool | None = None

    @field_validator("title", "author", "genre")
    @classmethod
    def validate_optional_text(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = _clean_text(v)
        if not v:
            raise ValueError("Field cannot be empty or whitespace only")
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str | None) -> str | None:
        if v is None:
            return v
        # An explicit empty description clears it
        return _clean_text(v) or None


class UserSummary(BaseModel):
    """Public view of a user attached to books and exchange requests."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., gt=0, description="User ID")
    display_name: str = Field(..., description="Name shown to other users")
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    profile_image_url: str | None = None


class BookResponse(BaseModel):
    """Schema for book API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., gt=0, description="Book ID")
    title: str
    author: str
    genre: str
    condition: BookCondition
    description: str | None = None
    cover_image_url: str | None = Field(default=None, description="Public URL of the cover image")
    owner_id: int = Field(..., gt=0, description="ID of the user who owns this book")
    is_available: bool = Field(..., description="Whether the book accepts exchange requests")
    created_at: datetime = Field(..., description="Book creation timestamp")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp")


class BookWithOwner(BookResponse):
    """Schema for book responses that include the owner."""

    owner: UserSummary = Field(..., description="User who owns this book")


class BookListRequest(BaseModel):
    """Schema for the public book listing query parameters."""

    page: int = Field(default=1, ge=1, description="Page number (starts from 1)")
    page_size: int = Field(default=20, ge=1, le=100, description="Number of books per page (max 100)")
    search: str | None = Field(
        default=None,
        max_length=100,
        description="Matches title, author or genre (case-insensitive)",
        examples=["tolkien"],
    )
    genre: str | None = Field(default=None, max_length=100, description="Exact genre (case-insensitive)")
    condition: BookCondition | None = Field(default=None, description="Exact condition")

    @field_validator("search", "genre")
    @classmethod
    def validate_filter_text(cls, v: str | None) -> str | None:
        """Treat blank filters as absent."""
        return _clean_text(v) or None


class BookListResponse(BaseModel):
    """Schema for paginated book list responses."""

    books: list[BookWithOwner] = Field(..., description="Books on this page")
    total: int = Field(..., ge=0, description="Total number of matching books")
    page: int = Field(..., ge=1, description="Current page number")
    page_size: int = Field(..., ge=1, le=100, description="Number of books per page")
    total_pages: int = Field(..., ge=0, description="Total number of pages")

    @model_validator(mode="after")
    def validate_total_pages(self) -> "BookListResponse":
        """Validate total pages calculation."""
        expected_pages = (self.total + self.page_size - 1) // self.page_size
        if self.total_pages != expected_pages:
            raise ValueError("Total pages calculation is incorrect")
        return self


class BookStats(BaseModel):
    """Counts shown on the owner's book dashboard."""

    total: int = Field(..., ge=0)
    available: int = Field(..., ge=0)
    unavailable: int = Field(..., ge=0)
