"""Book repository for database operations.

This module provides the BookRepository class that handles all database
operations for listed books: the public available-books listing, owner-scoped
queries, and owner-checked updates and deletes.
"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, and_, desc, select

from ..models.book import Book, BookCondition, BookCreate, BookUpdate


def _escape_like(value: str) -> str:
    # Wildcards typed by users match literally
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class BookNotFoundError(Exception):
    """Raised when a book is not found."""

    def __init__(self, book_id: int) -> None:
        self.book_id = book_id
        super().__init__(f"Book with id {book_id} not found")


class BookAccessDeniedError(Exception):
    """Raised when a user tries to modify a book they don't own."""

    def __init__(self, book_id: int, user_id: int) -> None:
        self.book_id = book_id
        self.user_id = user_id
        super().__init__(f"User {user_id} does not own book {book_id}")


class BookRepository:
    """Repository for book database operations.

    Reads are public; writes are scoped to the owning user.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a database session.

        Args:
            session: SQLModel database session
        """
        self.session = session

    def create(self, book_data: BookCreate, owner_id: int) -> Book:
        """Create a new book owned by the specified user.

        Args:
            book_data: Book creation data
            owner_id: ID of the user who lists the book

        Returns:
            Book: The created book, available by default

        Raises:
            IntegrityError: If owner_id doesn't exist
            SQLAlchemyError: If database operation fails
        """
        try:
            db_book = Book(
                title=book_data.title,
                author=book_data.author,
                genre=book_data.genre,
                condition=BookCondition(book_data.condition).value,
                description=book_data.description,
                cover_image_url=book_data.cover_image_url,
                owner_id=owner_id,
                is_available=True,
            )

            self.session.add(db_book)
            self.session.commit()
            self.session.refresh(db_book)

            return db_book

        except IntegrityError as e:
            self.session.rollback()
            raise IntegrityError(
                f"Failed to create book: owner {owner_id} does not exist",
                params=None,
                orig=e.orig if e.orig is not None else e,
            ) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise SQLAlchemyError(
                f"Database error while creating book: {str(e)}"
            ) from e

    def get_by_id(self, book_id: int) -> Optional[Book]:
        """Get a book by ID regardless of owner or availability.

        Args:
            book_id: ID of the book to retrieve

        Returns:
            Book: The book with its owner loaded, None if missing
        """
        try:
            statement = (
                select(Book)
                .where(Book.id == book_id)
                .options(selectinload(Book.owner))
            )
            return self.session.exec(statement).first()

        except SQLAlchemyError as e:
            raise SQLAlchemyError(
                f"Database error while retrieving book {book_id}: {str(e)}"
            ) from e

    def get_owned_or_raise(self, book_id: int, owner_id: int) -> Book:
        """Get a book that must exist and belong to the given user.

        Args:
            book_id: ID of the book to retrieve
            owner_id: ID of the user who should own the book

        Returns:
            Book: The owned book

        Raises:
            BookNotFoundError: If book is not found
            BookAccessDeniedError: If book exists but is owned by another user
        """
        book = self.get_by_id(book_id)
        if book is None:
            raise BookNotFoundError(book_id)
        if book.owner_id != owner_id:
            raise BookAccessDeniedError(book_id, owner_id)
        return book

    def _available_conditions(
        self,
        search: Optional[str] = None,
        genre: Optional[str] = None,
        condition: Optional[BookCondition] = None,
    ) -> list:
        conditions = [Book.is_available.is_(True)]

        if search:
            search_pattern = f"%{_escape_like(search.lower())}%"
            conditions.append(
                or_(
                    func.lower(Book.title).like(search_pattern, escape="\\"),
                    func.lower(Book.author).like(search_pattern, escape="\\"),
                    func.lower(Book.genre).like(search_pattern, escape="\\"),
                )
            )

        if genre:
            conditions.append(func.lower(Book.genre) == genre.lower())

        if condition:
            conditions.append(Book.condition == BookCondition(condition).value)

        return conditions

    def list_available(
        self,
        search: Optional[str] = None,
        genre: Optional[str] = None,
        condition: Optional[BookCondition] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Book]:
        """List available books, newest first, with their owners.

        Args:
            search: Case-insensitive substring matched against title, author and genre
            genre: Case-insensitive exact genre
            condition: Exact condition
            skip: Number of books to skip (for pagination)
            limit: Maximum number of books to return

        Returns:
            List[Book]: Matching available books

        Raises:
            SQLAlchemyError: If database operation fails
        """
        try:
            statement = (
                select(Book)
                .where(and_(*self._available_conditions(search, genre, condition)))
                .options(selectinload(Book.owner))
                .order_by(desc(Book.created_at), desc(Book.id))
                .offset(skip)
                .limit(limit)
            )

            result = self.session.exec(statement)
            return list(result.all())

        except SQLAlchemyError as e:
            raise SQLAlchemyError(
                f"Database error while listing available books: {str(e)}"
            ) from e

    def count_available(
        self,
        search: Optional[str] = None,
        genre: Optional[str] = None,
        condition: Optional[BookCondition] = None,
    ) -> int:
        """Count available books matching the same filters as ``list_available``."""
        try:
            statement = select(func.count(Book.id)).where(
                and_(*self._available_conditions(search, genre, condition))
            )
            return self.session.exec(statement).one()

        except SQLAlchemyError as e:
            raise SQLAlchemyError(
                f"Database error while counting available books: {str(e)}"
            ) from e

    def list_for_owner(self, owner_id: int) -> list[Book]:
        """List every book a user owns, available or not, newest first.

        Args:
            owner_id: ID of the owning user

        Returns:
            List[Book]: The user's books

        Raises:
            SQLAlchemyError: If database operation fails
        """
        try:
            statement = (
                select(Book)
                .where(Book.owner_id == owner_id)
                .options(selectinload(Book.owner))
                .order_by(desc(Book.created_at), desc(Book.id))
            )
            return list(self.session.exec(statement).all())

        except SQLAlchemyError as e:
            raise SQLAlchemyError(
                f"Database error while retrieving books for user {owner_id}: "
                f"{str(e)}"
            ) from e

    def count_for_owner(self, owner_id: int) -> tuple[int, int]:
        """Count a user's books.

        Args:
            owner_id: ID of the owning user

        Returns:
            Tuple of (total, available)
        """
        try:
            total = self.session.exec(
                select(func.count(Book.id)).where(Book.owner_id == owner_id)
            ).one()
            available = self.session.exec(
                select(func.count(Book.id)).where(
                    and_(Book.owner_id == owner_id, Book.is_available.is_(True))
                )
            ).one()
            return total, available

        except SQLAlchemyError as e:
            raise SQLAlchemyError(
                f"Database error while counting books for user {owner_id}: "
                f"{str(e)}"
            ) from e

    def update(self, book_id: int, owner_id: int, book_data: BookUpdate) -> Book:
        """Update a book owned by the specified user.

        Args:
            book_id: ID of the book to update
            owner_id: ID of the user who should own the book
            book_data: Fields to change; unset fields are left alone

        Returns:
            Book: The updated book

        Raises:
            BookNotFoundError: If book is not found
            BookAccessDeniedError: If book is owned by another user
            SQLAlchemyError: If database operation fails
        """
        try:
            db_book = self.get_owned_or_raise(book_id, owner_id)

            update_data = book_data.model_dump(exclude_unset=True)
            if update_data.get("condition") is not None:
                update_data["condition"] = BookCondition(update_data["condition"]).value

            for field, value in update_data.items():
                setattr(db_book, field, value)

            self.session.add(db_book)
            self.session.commit()
            self.session.refresh(db_book)

            return db_book

        except (BookNotFoundError, BookAccessDeniedError):
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            raise SQLAlchemyError(
                f"Database error while updating book {book_id}: {str(e)}"
            ) from e

    def delete(self, book_id: int, owner_id: int) -> bool:
        """Delete a book and its exchange requests.

        Args:
            book_id: ID of the book to delete
            owner_id: ID of the user who should own the book

        Returns:
            bool: True if book was deleted, False if it did not exist

        Raises:
            BookAccessDeniedError: If book is owned by another user
            SQLAlchemyError: If database operation fails
        """
        try:
            book = self.get_by_id(book_id)
            if book is None:
                return False

            if book.owner_id != owner_id:
                raise BookAccessDeniedError(book_id, owner_id)

            # Exchange requests go with the book (delete-orphan cascade)
            self.session.delete(book)
            self.session.commit()

            return True

        except BookAccessDeniedError:
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            raise SQLAlchemyError(
                f"Database error while deleting book {book_id}: {str(e)}"
            ) from e
