"""Books router for listing, browsing and managing books.

This module provides the public book listing and detail endpoints, the
authenticated owner dashboard, and owner-only create, update and delete
endpoints that accept multipart forms with an optional cover image.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, File, Form, HTTPException, Query, Response, UploadFile, status
from pydantic import ValidationError

from ..dependencies import BookServiceDep, CurrentUserId
from ..exceptions import NotFoundException, ValidationException
from ..models.book import BookCondition
from ..schemas.book_schemas import (
    BookCreateRequest,
    BookListRequest,
    BookListResponse,
    BookResponse,
    BookStats,
    BookUpdateRequest,
    BookWithOwner,
)
from ..services.book_service import BookServiceError

router = APIRouter(
    prefix="/api",
    tags=["books"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Not found"},
    },
)


def _invalid_form(error: ValidationError) -> ValidationException:
    first = error.errors()[0]
    field = ".".join(str(loc) for loc in first["loc"]) or None
    return ValidationException(first["msg"].removeprefix("Value error, "), field=field)


def _uploaded(cover: Optional[UploadFile]) -> Optional[UploadFile]:
    # Browsers send an empty, unnamed part when no file was picked
    if cover is None or not cover.filename:
        return None
    return cover


@router.get(
    "/books",
    response_model=BookListResponse,
    summary="Browse available books",
    description="Available books from all users, newest first, with search and filters",
)
async def list_books(
    book_service: BookServiceDep,
    page: int = Query(default=1, ge=1, description="Page number (starts from 1)"),
    page_size: int = Query(default=20, ge=1, le=100, description="Number of books per page (max 100)"),
    search: Optional[str] = Query(default=None, max_length=100, description="Search title, author or genre"),
    genre: Optional[str] = Query(default=None, max_length=100, description="Filter by genre"),
    condition: Optional[BookCondition] = Query(default=None, description="Filter by condition"),
) -> BookListResponse:
    list_request = BookListRequest(
        page=page, page_size=page_size, search=search, genre=genre, condition=condition
    )
    try:
        return await book_service.list_available_books(list_request)
    except BookServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.get(
    "/books/{book_id}",
    response_model=BookWithOwner,
    summary="Get a book",
)
async def get_book(book_id: int, book_service: BookServiceDep) -> BookWithOwner:
    """Get any book, available or not, with its owner."""
    try:
        book = await book_service.get_book(book_id)
    except BookServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e

    if book is None:
        raise NotFoundException("Book", book_id, message="Book not found")
    return book


@router.post(
    "/books",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="List a book",
    description="Create a book owned by the authenticated user (multipart form with optional cover)",
)
async def create_book(
    current_user_id: CurrentUserId,
    book_service: BookServiceDep,
    title: Annotated[str, Form(max_length=255)],
    author: Annotated[str, Form(max_length=255)],
    genre: Annotated[str, Form(max_length=100)],
    condition: Annotated[BookCondition, Form()],
    description: Annotated[Optional[str], Form(max_length=2000)] = None,
    cover: Annotated[Optional[UploadFile], File(description="Cover image")] = None,
) -> BookResponse:
    """Create a new book.

    Example:
        POST /api/books (multipart/form-data)
        title=Dune, author=Frank Herbert, genre=Science Fiction,
        condition=good, cover=<image file>
    """
    try:
        book_data = BookCreateRequest(
            title=title,
            author=author,
            genre=genre,
            condition=condition,
            description=description,
        )
    except ValidationError as e:
        raise _invalid_form(e) from e

    try:
        return await book_service.create_book(book_data, current_user_id, _uploaded(cover))
    except BookServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.put(
    "/books/{book_id}",
    response_model=BookResponse,
    summary="Update a book",
    description="Partially update a book you own (multipart form with optional new cover)",
)
async def update_book(
    book_id: int,
    current_user_id: CurrentUserId,
    book_service: BookServiceDep,
    title: Annotated[Optional[str], Form(max_length=255)] = None,
    author: Annotated[Optional[str], Form(max_length=255)] = None,
    genre: Annotated[Optional[str], Form(max_length=100)] = None,
    condition: Annotated[Optional[BookCondition], Form()] = None,
    description: Annotated[Optional[str], Form(max_length=2000)] = None,
    is_available: Annotated[Optional[bool], Form()] = None,
    cover: Annotated[Optional[UploadFile], File(description="Replacement cover image")] = None,
) -> BookResponse:
    """Update a book owned by the authenticated user.

    Only the fields present in the form are changed. Responds 403 when the
    book belongs to someone else.
    """
    submitted = {
        "title": title,
        "author": author,
        "genre": genre,
        "condition": condition,
        "description": description,
        "is_available": is_available,
    }
    try:
        book_data = BookUpdateRequest(
            **{field: value for field, value in submitted.items() if value is not None}
        )
    except ValidationError as e:
        raise _invalid_form(e) from e

    try:
        return await book_service.update_book(
            book_id, current_user_id, book_data, _uploaded(cover)
        )
    except BookServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.delete(
    "/books/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a book",
    description="Delete a book you own together with its exchange requests",
)
async def delete_book(
    book_id: int,
    current_user_id: CurrentUserId,
    book_service: BookServiceDep,
) -> Response:
    try:
        await book_service.delete_book(book_id, current_user_id)
    except BookServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/my-books",
    response_model=list[BookWithOwner],
    summary="My books",
    description="Every book the authenticated user owns, newest first",
)
async def list_my_books(
    current_user_id: CurrentUserId,
    book_service: BookServiceDep,
) -> list[BookWithOwner]:
    try:
        return await book_service.list_books_for_owner(current_user_id)
    except BookServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.get(
    "/my-books/stats",
    response_model=BookStats,
    summary="My book counts",
)
async def get_my_book_stats(
    current_user_id: CurrentUserId,
    book_service: BookServiceDep,
) -> BookStats:
    """Total, available and unavailable counts for the authenticated user."""
    try:
        return await book_service.get_owner_stats(current_user_id)
    except BookServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
