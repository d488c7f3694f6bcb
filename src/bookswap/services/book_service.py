"""Book service for business logic operations.

This module provides business logic for listing books: the public browse
listing, owner dashboards, and owner-only create, update and delete with
cover image handling and operation logging.
"""

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..logging_config import SecurityLoggingMixin, get_logger, log_database_operation
from ..models.book import Book, BookCreate, BookUpdate
from ..repositories.book_repository import (
    BookAccessDeniedError,
    BookNotFoundError,
    BookRepository,
)
from ..schemas.book_schemas import (
    BookCreateRequest,
    BookListRequest,
    BookListResponse,
    BookResponse,
    BookStats,
    BookUpdateRequest,
    BookWithOwner,
)
from .cover_storage import CoverStorage, UploadValidationError

logger = get_logger("book_service")


class BookServiceError(Exception):
    """Base exception for book service errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        original_error: Exception | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.original_error = original_error
        super().__init__(self.message)


class BookNotFoundServiceError(BookServiceError):
    """Exception raised when book is not found."""

    def __init__(self, book_id: int) -> None:
        super().__init__(f"Book with id {book_id} not found", status_code=404)


class BookAccessDeniedServiceError(BookServiceError):
    """Exception raised when user doesn't own the book."""

    def __init__(self, book_id: int, user_id: int) -> None:
        super().__init__(
            "Not authorized to modify this book", status_code=403
        )
        self.book_id = book_id
        self.user_id = user_id


class BookValidationError(BookServiceError):
    """Exception raised for book validation errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=400)


class BookService(SecurityLoggingMixin):
    """Service for book business logic operations.

    Reads are public. Writes are restricted to the book's owner; a cover
    upload is stored before the row is written and cleaned up if the write
    fails.
    """

    def __init__(self, session: Session, storage: CoverStorage) -> None:
        """Initialize book service.

        Args:
            session: SQLModel database session
            storage: Cover image storage
        """
        super().__init__()
        self.session = session
        self.storage = storage
        self.book_repository = BookRepository(session)

    async def _store_cover(self, cover: UploadFile | None) -> str | None:
        if cover is None:
            return None
        try:
            return await self.storage.save(cover)
        except UploadValidationError as e:
            raise BookValidationError(e.message) from e

    async def create_book(
        self,
        book_data: BookCreateRequest,
        owner_id: int,
        cover: UploadFile | None = None,
    ) -> BookResponse:
        """List a new book for the specified user.

        Args:
            book_data: Validated book fields
            owner_id: ID of the user listing the book
            cover: Optional cover image upload

        Returns:
            Created book response (available)

        Raises:
            BookValidationError: If the cover upload is rejected
            BookServiceError: If book creation fails
        """
        cover_url = await self._store_cover(cover)

        try:
            book = self.book_repository.create(
                BookCreate(**book_data.model_dump(), cover_image_url=cover_url),
                owner_id,
            )
        except SQLAlchemyError as e:
            self.storage.remove(cover_url)
            log_database_operation(
                operation="INSERT",
                table="books",
                success=False,
                error=str(e),
                user_id=owner_id,
            )
            raise BookServiceError(
                "Failed to create book", status_code=500, original_error=e
            ) from e

        log_database_operation(
            operation="INSERT",
            table="books",
            success=True,
            user_id=owner_id,
            book_id=book.id,
        )
        logger.info(
            f"Book {book.id} listed by user {owner_id}",
            extra={"user_id": owner_id, "book_id": book.id, "has_cover": cover_url is not None},
        )

        return self._convert_to_response(book)

    async def get_book(self, book_id: int) -> BookWithOwner | None:
        """Get any book with its owner.

        Returns:
            The book if it exists, None otherwise

        Raises:
            BookServiceError: If operation fails
        """
        try:
            book = self.book_repository.get_by_id(book_id)
        except SQLAlchemyError as e:
            raise BookServiceError(
                "Failed to get book", status_code=500, original_error=e
            ) from e

        if book is None:
            return None
        return self._convert_with_owner(book)

    async def list_available_books(self, request: BookListRequest) -> BookListResponse:
        """Browse available books with search, filters and pagination.

        Args:
            request: Listing filters and page

        Returns:
            One page of available books, newest first

        Raises:
            BookServiceError: If operation fails
        """
        skip = (request.page - 1) * request.page_size

        try:
            books = self.book_repository.list_available(
                search=request.search,
                genre=request.genre,
                condition=request.condition,
                skip=skip,
                limit=request.page_size,
            )
            total = self.book_repository.count_available(
                search=request.search,
                genre=request.genre,
                condition=request.condition,
            )
        except SQLAlchemyError as e:
            raise BookServiceError(
                "Failed to list books", status_code=500, original_error=e
            ) from e

        return BookListResponse(
            books=[self._convert_with_owner(book) for book in books],
            total=total,
            page=request.page,
            page_size=request.page_size,
            total_pages=(total + request.page_size - 1) // request.page_size,
        )

    async def list_books_for_owner(self, owner_id: int) -> list[BookWithOwner]:
        """Get every book the user owns, available or not."""
        try:
            books = self.book_repository.list_for_owner(owner_id)
        except SQLAlchemyError as e:
            raise BookServiceError(
                "Failed to get your books", status_code=500, original_error=e
            ) from e

        return [self._convert_with_owner(book) for book in books]

    async def get_owner_stats(self, owner_id: int) -> BookStats:
        """Count the user's books by availability."""
        try:
            total, available = self.book_repository.count_for_owner(owner_id)
        except SQLAlchemyError as e:
            raise BookServiceError(
                "Failed to count your books", status_code=500, original_error=e
            ) from e

        return BookStats(total=total, available=available, unavailable=total - available)

    async def update_book(
        self,
        book_id: int,
        user_id: int,
        book_data: BookUpdateRequest,
        cover: UploadFile | None = None,
    ) -> BookResponse:
        """Update a book the user owns.

        Ownership is checked before a new cover is stored. A replaced cover
        file is deleted once the update is committed.

        Args:
            book_id: ID of the book to update
            user_id: ID of the user making the change
            book_data: Fields to change
            cover: Optional replacement cover

        Returns:
            Updated book response

        Raises:
            BookNotFoundServiceError: If book is not found
            BookAccessDeniedServiceError: If the user does not own the book
            BookValidationError: If nothing is being changed or the cover is rejected
            BookServiceError: If operation fails
        """
        changes = book_data.model_dump(exclude_unset=True)
        if not changes and cover is None:
            raise BookValidationError("No fields provided for update")

        try:
            existing = self.book_repository.get_owned_or_raise(book_id, user_id)
            previous_cover = existing.cover_image_url
        except BookNotFoundError as e:
            raise BookNotFoundServiceError(book_id) from e
        except BookAccessDeniedError as e:
            self.log_authorization_failure(
                user_id=user_id, resource=f"book:{book_id}", action="update", reason="not owner"
            )
            raise BookAccessDeniedServiceError(book_id, user_id) from e
        except SQLAlchemyError as e:
            raise BookServiceError(
                "Failed to update book", status_code=500, original_error=e
            ) from e

        cover_url = await self._store_cover(cover)
        if cover_url is not None:
            changes["cover_image_url"] = cover_url

        try:
            book = self.book_repository.update(book_id, user_id, BookUpdate(**changes))
        except (BookNotFoundError, BookAccessDeniedError, SQLAlchemyError) as e:
            self.storage.remove(cover_url)
            if isinstance(e, BookNotFoundError):
                raise BookNotFoundServiceError(book_id) from e
            if isinstance(e, BookAccessDeniedError):
                raise BookAccessDeniedServiceError(book_id, user_id) from e
            log_database_operation(
                operation="UPDATE", table="books", success=False, error=str(e), book_id=book_id
            )
            raise BookServiceError(
                "Failed to update book", status_code=500, original_error=e
            ) from e

        if cover_url is not None and previous_cover:
            self.storage.remove(previous_cover)

        log_database_operation(
            operation="UPDATE",
            table="books",
            success=True,
            user_id=user_id,
            book_id=book_id,
            fields=sorted(changes),
        )
        return self._convert_to_response(book)

    async def delete_book(self, book_id: int, user_id: int) -> None:
        """Delete a book the user owns, its exchange requests and its cover.

        Raises:
            BookNotFoundServiceError: If book is not found
            BookAccessDeniedServiceError: If the user does not own the book
            BookServiceError: If operation fails
        """
        try:
            book = self.book_repository.get_owned_or_raise(book_id, user_id)
            cover_url = book.cover_image_url
            self.book_repository.delete(book_id, user_id)
        except BookNotFoundError as e:
            raise BookNotFoundServiceError(book_id) from e
        except BookAccessDeniedError as e:
            self.log_authorization_failure(
                user_id=user_id, resource=f"book:{book_id}", action="delete", reason="not owner"
            )
            raise BookAccessDeniedServiceError(book_id, user_id) from e
        except SQLAlchemyError as e:
            log_database_operation(
                operation="DELETE", table="books", success=False, error=str(e), book_id=book_id
            )
            raise BookServiceError(
                "Failed to delete book", status_code=500, original_error=e
            ) from e

        self.storage.remove(cover_url)
        log_database_operation(
            operation="DELETE", table="books", success=True, user_id=user_id, book_id=book_id
        )

    def _convert_to_response(self, book: Book) -> BookResponse:
        """Convert Book model to BookResponse schema."""
        return BookResponse.model_validate(book)

    def _convert_with_owner(self, book: Book) -> BookWithOwner:
        return BookWithOwner.model_validate(book)
