"""Exchange requests router.

This module provides endpoints to request another user's book, list sent and
incoming requests, and move a request through the exchange workflow.
"""

from fastapi import APIRouter, HTTPException, status

from ..dependencies import CurrentUserId, ExchangeServiceDep
from ..schemas.exchange_schemas import (
    ExchangeRequestCreateRequest,
    ExchangeRequestResponse,
    ExchangeRequestWithDetails,
    StatusUpdateRequest,
)
from ..services.exchange_service import ExchangeServiceError

router = APIRouter(
    prefix="/api",
    tags=["exchange requests"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Not found"},
        409: {"description": "Status change not allowed"},
    },
)


@router.post(
    "/exchange-requests",
    response_model=ExchangeRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request an exchange",
    description="Ask for another user's available book",
)
async def create_exchange_request(
    request: ExchangeRequestCreateRequest,
    current_user_id: CurrentUserId,
    exchange_service: ExchangeServiceDep,
) -> ExchangeRequestResponse:
    """Create a pending exchange request.

    Responds 400 when the book is unavailable or belongs to the caller, and
    404 when it does not exist.

    Example:
        POST /api/exchange-requests
        {"book_id": 42, "message": "Would swap for any of my sci-fi titles"}
    """
    try:
        return await exchange_service.create_request(request, current_user_id)
    except ExchangeServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.get(
    "/my-requests",
    response_model=list[ExchangeRequestWithDetails],
    summary="Requests I sent",
)
async def list_my_requests(
    current_user_id: CurrentUserId,
    exchange_service: ExchangeServiceDep,
) -> list[ExchangeRequestWithDetails]:
    try:
        return await exchange_service.list_my_requests(current_user_id)
    except ExchangeServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.get(
    "/incoming-requests",
    response_model=list[ExchangeRequestWithDetails],
    summary="Requests for my books",
)
async def list_incoming_requests(
    current_user_id: CurrentUserId,
    exchange_service: ExchangeServiceDep,
) -> list[ExchangeRequestWithDetails]:
    try:
        return await exchange_service.list_incoming_requests(current_user_id)
    except ExchangeServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.put(
    "/exchange-requests/{request_id}/status",
    response_model=ExchangeRequestResponse,
    summary="Update request status",
    description="Accept, reject or complete an exchange request",
)
async def update_exchange_request_status(
    request_id: int,
    update: StatusUpdateRequest,
    current_user_id: CurrentUserId,
    exchange_service: ExchangeServiceDep,
) -> ExchangeRequestResponse:
    """Change the status of an exchange request.

    The book owner accepts or rejects; either party may mark the exchange
    completed. Accepting takes the book off the public listing.
    """
    try:
        return await exchange_service.update_status(
            request_id, current_user_id, update.status
        )
    except ExchangeServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
