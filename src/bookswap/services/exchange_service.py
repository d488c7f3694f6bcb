"""Exchange request service for the book swap workflow.

A request starts ``pending``; the book owner accepts or rejects it, and only
an accepted exchange can then be marked ``completed``, by either party.
Accepting takes the book off the market in the same transaction.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..logging_config import SecurityLoggingMixin, get_logger, log_database_operation
from ..models.exchange_request import ExchangeRequest, ExchangeRequestCreate, ExchangeStatus
from ..repositories.book_repository import BookRepository
from ..repositories.exchange_request_repository import (
    BookNoLongerAvailableError,
    ExchangeRequestNotFoundError,
    ExchangeRequestRepository,
)
from ..schemas.exchange_schemas import (
    ExchangeRequestCreateRequest,
    ExchangeRequestResponse,
    ExchangeRequestWithDetails,
)

logger = get_logger("exchange_service")

SETTABLE_STATUSES = (
    ExchangeStatus.ACCEPTED,
    ExchangeStatus.REJECTED,
    ExchangeStatus.COMPLETED,
)

ALLOWED_TRANSITIONS: dict[ExchangeStatus, set[ExchangeStatus]] = {
    ExchangeStatus.PENDING: {ExchangeStatus.ACCEPTED, ExchangeStatus.REJECTED},
    ExchangeStatus.ACCEPTED: {ExchangeStatus.COMPLETED},
    ExchangeStatus.REJECTED: set(),
    ExchangeStatus.COMPLETED: set(),
}


class ExchangeServiceError(Exception):
    """Base exception for exchange service errors."""

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


class ExchangeNotFoundServiceError(ExchangeServiceError):
    """Raised when the request or its book does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=404)


class ExchangeAccessDeniedServiceError(ExchangeServiceError):
    """Raised when the user may not act on an exchange request."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=403)


class ExchangeValidationError(ExchangeServiceError):
    """Raised for invalid exchange input."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=400)


class ExchangeConflictError(ExchangeServiceError):
    """Raised when a status change is not allowed from the current state."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=409)


def parse_settable_status(value: str) -> ExchangeStatus:
    """Parse a status an API client may set.

    Raises:
        ExchangeValidationError: For anything but accepted, rejected or completed
    """
    try:
        status = ExchangeStatus(value)
    except ValueError:
        status = None
    if status not in SETTABLE_STATUSES:
        allowed = ", ".join(s.value for s in SETTABLE_STATUSES)
        raise ExchangeValidationError(f"Invalid status. Must be one of: {allowed}")
    return status


class ExchangeService(SecurityLoggingMixin):
    """Service for exchange request business logic."""

    def __init__(self, session: Session) -> None:
        """Initialize exchange service with database session.

        Args:
            session: SQLModel database session
        """
        super().__init__()
        self.session = session
        self.request_repository = ExchangeRequestRepository(session)
        self.book_repository = BookRepository(session)

    async def create_request(
        self, request_data: ExchangeRequestCreateRequest, requester_id: int
    ) -> ExchangeRequestResponse:
        """Ask for another user's available book.

        Args:
            request_data: Requested book and optional message
            requester_id: ID of the requesting user

        Returns:
            The pending exchange request

        Raises:
            ExchangeNotFoundServiceError: If the book does not exist
            ExchangeValidationError: If the book is unavailable or owned by the requester
            ExchangeServiceError: If operation fails
        """
        try:
            book = self.book_repository.get_by_id(request_data.book_id)
            if book is None:
                raise ExchangeNotFoundServiceError(
                    f"Book with id {request_data.book_id} not found"
                )
            if not book.is_available:
                raise ExchangeValidationError("Book is not available for exchange")
            if book.owner_id == requester_id:
                raise ExchangeValidationError("Cannot request your own book")

            exchange_request = self.request_repository.create(
                ExchangeRequestCreate(
                    book_id=request_data.book_id, message=request_data.message
                ),
                requester_id,
            )
        except SQLAlchemyError as e:
            log_database_operation(
                operation="INSERT",
                table="exchange_requests",
                success=False,
                error=str(e),
                user_id=requester_id,
            )
            raise ExchangeServiceError(
                "Failed to create exchange request", status_code=500, original_error=e
            ) from e

        log_database_operation(
            operation="INSERT",
            table="exchange_requests",
            success=True,
            user_id=requester_id,
            request_id=exchange_request.id,
            book_id=exchange_request.book_id,
        )
        return ExchangeRequestResponse.model_validate(exchange_request)

    async def list_my_requests(self, user_id: int) -> list[ExchangeRequestWithDetails]:
        """Requests the user has sent, newest first."""
        try:
            requests = self.request_repository.list_by_requester(user_id)
        except SQLAlchemyError as e:
            raise ExchangeServiceError(
                "Failed to get your requests", status_code=500, original_error=e
            ) from e
        return [self._convert_with_details(r) for r in requests]

    async def list_incoming_requests(self, user_id: int) -> list[ExchangeRequestWithDetails]:
        """Requests on books the user owns, newest first."""
        try:
            requests = self.request_repository.list_for_owner(user_id)
        except SQLAlchemyError as e:
            raise ExchangeServiceError(
                "Failed to get incoming requests", status_code=500, original_error=e
            ) from e
        return [self._convert_with_details(r) for r in requests]

    async def update_status(
        self, request_id: int, user_id: int, new_status: str
    ) -> ExchangeRequestResponse:
        """Move an exchange request through the workflow.

        Only the book owner may accept or reject a pending request; an
        accepted request may be completed by the owner or the requester.

        Args:
            request_id: ID of the exchange request
            user_id: ID of the acting user
            new_status: Requested status

        Returns:
            The updated exchange request

        Raises:
            ExchangeValidationError: If the status is not accepted, rejected or completed
            ExchangeNotFoundServiceError: If the request does not exist
            ExchangeAccessDeniedServiceError: If the user may not make this change
            ExchangeConflictError: If the transition is not allowed or the book is gone
            ExchangeServiceError: If operation fails
        """
        target = parse_settable_status(new_status)

        try:
            exchange_request = self.request_repository.get_by_id_or_raise(request_id)
        except ExchangeRequestNotFoundError as e:
            raise ExchangeNotFoundServiceError(
                f"Exchange request with id {request_id} not found"
            ) from e
        except SQLAlchemyError as e:
            raise ExchangeServiceError(
                "Failed to get exchange request", status_code=500, original_error=e
            ) from e

        self._check_authority(exchange_request, user_id, target)

        current = ExchangeStatus(exchange_request.status)
        if target not in ALLOWED_TRANSITIONS[current]:
            raise ExchangeConflictError(
                f"Cannot change request status from {current.value} to {target.value}"
            )

        try:
            exchange_request = self.request_repository.update_status(
                exchange_request,
                target,
                reserve_book=target == ExchangeStatus.ACCEPTED,
            )
        except BookNoLongerAvailableError as e:
            raise ExchangeConflictError("Book is no longer available") from e
        except SQLAlchemyError as e:
            log_database_operation(
                operation="UPDATE",
                table="exchange_requests",
                success=False,
                error=str(e),
                request_id=request_id,
            )
            raise ExchangeServiceError(
                "Failed to update exchange request", status_code=500, original_error=e
            ) from e

        logger.info(
            f"Exchange request {request_id} {current.value} -> {target.value}",
            extra={
                "user_id": user_id,
                "request_id": request_id,
                "book_id": exchange_request.book_id,
                "from_status": current.value,
                "to_status": target.value,
            },
        )
        return ExchangeRequestResponse.model_validate(exchange_request)

    def _check_authority(
        self, exchange_request: ExchangeRequest, user_id: int, target: ExchangeStatus
    ) -> None:
        owner_id = exchange_request.book.owner_id
        if user_id == owner_id:
            return
        if target == ExchangeStatus.COMPLETED and user_id == exchange_request.requester_id:
            return

        self.log_authorization_failure(
            user_id=user_id,
            resource=f"exchange_request:{exchange_request.id}",
            action=target.value,
            reason="not the book owner",
        )
        if target == ExchangeStatus.COMPLETED:
            raise ExchangeAccessDeniedServiceError(
                "Only the book owner or the requester can complete an exchange"
            )
        raise ExchangeAccessDeniedServiceError(
            "Only the book owner can accept or reject a request"
        )

    def _convert_with_details(self, exchange_request: ExchangeRequest) -> ExchangeRequestWithDetails:
        return ExchangeRequestWithDetails.model_validate(exchange_request)
