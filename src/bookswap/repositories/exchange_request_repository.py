"""Exchange request repository for database operations.

This module provides the ExchangeRequestRepository class for creating exchange
requests, listing them from the requester's and the book owner's side, and
changing their status together with the requested book's availability.
"""

from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, and_, desc, select

from ..models.book import Book
from ..models.exchange_request import ExchangeRequest, ExchangeRequestCreate, ExchangeStatus


class ExchangeRequestNotFoundError(Exception):
    """Raised when an exchange request is not found."""

    def __init__(self, request_id: int) -> None:
        self.request_id = request_id
        super().__init__(f"Exchange request with id {request_id} not found")


class BookNoLongerAvailableError(Exception):
    """Raised when accepting a request for a book that was already given away."""

    def __init__(self, book_id: int) -> None:
        self.book_id = book_id
        super().__init__(f"Book {book_id} is no longer available")


def _with_details(statement):
    return statement.options(
        selectinload(ExchangeRequest.requester),
        selectinload(ExchangeRequest.book).selectinload(Book.owner),
    )


class ExchangeRequestRepository:
    """Repository for exchange request database operations."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a database session.

        Args:
            session: SQLModel database session
        """
        self.session = session

    def create(self, request_data: ExchangeRequestCreate, requester_id: int) -> ExchangeRequest:
        """Create a pending exchange request.

        Args:
            request_data: Requested book and optional message
            requester_id: ID of the requesting user

        Returns:
            ExchangeRequest: The created request

        Raises:
            SQLAlchemyError: If database operation fails
        """
        try:
            db_request = ExchangeRequest(
                requester_id=requester_id,
                book_id=request_data.book_id,
                message=request_data.message,
                status=ExchangeStatus.PENDING.value,
            )

            self.session.add(db_request)
            self.session.commit()
            self.session.refresh(db_request)

            return db_request

        except SQLAlchemyError as e:
            self.session.rollback()
            raise SQLAlchemyError(
                f"Database error while creating exchange request: {str(e)}"
            ) from e

    def get_by_id(self, request_id: int) -> Optional[ExchangeRequest]:
        """Get an exchange request with its requester and book loaded.

        Args:
            request_id: ID of the request

        Returns:
            ExchangeRequest if found, None otherwise
        """
        try:
            statement = _with_details(
                select(ExchangeRequest).where(ExchangeRequest.id == request_id)
            )
            return self.session.exec(statement).first()

        except SQLAlchemyError as e:
            raise SQLAlchemyError(
                f"Database error while retrieving exchange request {request_id}: {str(e)}"
            ) from e

    def get_by_id_or_raise(self, request_id: int) -> ExchangeRequest:
        """Get an exchange request or raise ExchangeRequestNotFoundError."""
        exchange_request = self.get_by_id(request_id)
        if exchange_request is None:
            raise ExchangeRequestNotFoundError(request_id)
        return exchange_request

    def list_by_requester(self, requester_id: int) -> list[ExchangeRequest]:
        """List the requests a user has sent, newest first.

        Args:
            requester_id: ID of the requesting user

        Returns:
            List[ExchangeRequest]: Requests with requester, book and book owner loaded
        """
        try:
            statement = _with_details(
                select(ExchangeRequest)
                .where(ExchangeRequest.requester_id == requester_id)
                .order_by(desc(ExchangeRequest.created_at), desc(ExchangeRequest.id))
            )
            return list(self.session.exec(statement).all())

        except SQLAlchemyError as e:
            raise SQLAlchemyError(
                f"Database error while retrieving requests sent by user {requester_id}: "
                f"{str(e)}"
            ) from e

    def list_for_owner(self, owner_id: int) -> list[ExchangeRequest]:
        """List requests made on books a user owns, newest first.

        Args:
            owner_id: ID of the book owner

        Returns:
            List[ExchangeRequest]: Requests with requester, book and book owner loaded
        """
        try:
            statement = _with_details(
                select(ExchangeRequest)
                .join(Book, Book.id == ExchangeRequest.book_id)
                .where(Book.owner_id == owner_id)
                .order_by(desc(ExchangeRequest.created_at), desc(ExchangeRequest.id))
            )
            return list(self.session.exec(statement).all())

        except SQLAlchemyError as e:
            raise SQLAlchemyError(
                f"Database error while retrieving requests for owner {owner_id}: "
                f"{str(e)}"
            ) from e

    def update_status(
        self,
        exchange_request: ExchangeRequest,
        new_status: ExchangeStatus,
        reserve_book: bool = False,
    ) -> ExchangeRequest:
        """Change a request's status, optionally taking its book off the market.

        Both changes are committed together. When ``reserve_book`` is set the
        book is flipped to unavailable only if it is still available, so two
        requests on the same book cannot both be accepted.

        Args:
            exchange_request: The request to change
            new_status: Target status
            reserve_book: Mark the requested book unavailable in the same transaction

        Returns:
            ExchangeRequest: The updated request

        Raises:
            BookNoLongerAvailableError: If the book was already unavailable
            SQLAlchemyError: If database operation fails
        """
        try:
            if reserve_book:
                result = self.session.execute(
                    update(Book)
                    .where(and_(Book.id == exchange_request.book_id, Book.is_available.is_(True)))
                    .values(is_available=False)
                )
                if result.rowcount != 1:
                    self.session.rollback()
                    raise BookNoLongerAvailableError(exchange_request.book_id)

            exchange_request.status = ExchangeStatus(new_status).value
            self.session.add(exchange_request)
            self.session.commit()
            self.session.refresh(exchange_request)
            if reserve_book and exchange_request.book is not None:
                self.session.refresh(exchange_request.book)

            return exchange_request

        except BookNoLongerAvailableError:
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            raise SQLAlchemyError(
                f"Database error while updating exchange request {exchange_request.id}: "
                f"{str(e)}"
            ) from e
