"""Test configuration and fixtures.

This module provides test configuration, database setup, fixtures,
and test data factories for testing the BookSwap API.
"""

import os
import tempfile

# Settings are read at import time, so the test environment must be in place first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "testing"
os.environ["JWT_SECRET"] = "test_jwt_secret_key_for_testing_only"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="bookswap-test-uploads-")
os.environ["OIDC_USERINFO_URL"] = "https://idp.test/userinfo"

from datetime import timedelta  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Callable, Dict, Generator  # noqa: E402
from unittest.mock import AsyncMock, Mock, patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

from bookswap.config import Settings, get_settings  # noqa: E402
from bookswap.database import get_session  # noqa: E402
from bookswap.main import app  # noqa: E402
from bookswap.models.book import Book, BookCondition  # noqa: E402
from bookswap.models.user import User  # noqa: E402
from bookswap.schemas.auth_schemas import IdentityProfile  # noqa: E402
from bookswap.services.auth_service import AuthService  # noqa: E402
from bookswap.services.cover_storage import CoverStorage  # noqa: E402
from bookswap.services.user_service import UserService  # noqa: E402


# Test database configuration
TEST_DATABASE_URL = "sqlite://"

# Smallest valid PNG (1x1 transparent pixel)
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06"
    b"\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00\x00\x01\x01"
    b"\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Settings built from the test environment above."""
    return get_settings()


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with in-memory SQLite."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    SQLModel.metadata.create_all(engine)

    yield engine

    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_session(test_engine) -> Generator[Session, None, None]:
    """Create test database session."""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(scope="function")
def client(test_session: Session) -> Generator[TestClient, None, None]:
    """Create test client with test database session."""

    def get_test_session():
        return test_session

    app.dependency_overrides[get_session] = get_test_session

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def auth_service(test_settings: Settings) -> AuthService:
    return AuthService(test_settings)


@pytest.fixture(scope="function")
def cover_storage(tmp_path: Path) -> CoverStorage:
    """Cover storage writing to a per-test directory."""
    return CoverStorage(tmp_path / "covers", max_bytes=1024)


@pytest.fixture(scope="function")
def sample_profile() -> IdentityProfile:
    """Create sample identity provider profile for testing."""
    return IdentityProfile(
        sub="oidc|alice",
        email="alice@example.com",
        given_name="Alice",
        family_name="Reader",
        picture="https://example.com/alice.jpg",
    )


def _create_user(session: Session, subject: str, email: str, first_name: str) -> User:
    user = User(subject=subject, email=email, first_name=first_name, last_name="Tester")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture(scope="function")
def test_user(test_session: Session) -> User:
    """Create a test user (the usual caller) in the database."""
    return _create_user(test_session, "oidc|alice", "alice@example.com", "Alice")


@pytest.fixture(scope="function")
def other_user(test_session: Session) -> User:
    """Create a second user who owns other books."""
    return _create_user(test_session, "oidc|bob", "bob@example.com", "Bob")


@pytest.fixture(scope="function")
def third_user(test_session: Session) -> User:
    return _create_user(test_session, "oidc|carol", "carol@example.com", "Carol")


def _create_book(session: Session, owner: User, title: str, **overrides) -> Book:
    book = Book(
        title=title,
        author=overrides.pop("author", "Test Author"),
        genre=overrides.pop("genre", "Fiction"),
        condition=overrides.pop("condition", BookCondition.GOOD.value),
        owner_id=owner.id,
        **overrides,
    )
    session.add(book)
    session.commit()
    session.refresh(book)
    return book


@pytest.fixture(scope="function")
def book_factory(test_session: Session) -> Callable[..., Book]:
    """Create books: ``book_factory(owner, title, **fields)``."""

    def factory(owner: User, title: str = "Test Book", **fields) -> Book:
        return _create_book(test_session, owner, title, **fields)

    return factory


@pytest.fixture(scope="function")
def test_book(book_factory, test_user: User) -> Book:
    """An available book owned by ``test_user``."""
    return book_factory(test_user, "The Hobbit", author="J.R.R. Tolkien", genre="Fantasy")


@pytest.fixture(scope="function")
def other_book(book_factory, other_user: User) -> Book:
    """An available book owned by ``other_user``."""
    return book_factory(other_user, "Dune", author="Frank Herbert", genre="Science Fiction")


@pytest.fixture(scope="function")
def auth_headers_for(
    test_session: Session, auth_service: AuthService
) -> Callable[[User], Dict[str, str]]:
    """Open a real login session for a user and return its bearer headers."""

    def make_headers(user: User) -> Dict[str, str]:
        session_id = UserService(test_session).open_session(user.id, timedelta(hours=1))
        token = auth_service.create_jwt_token(user.id, session_id)
        return {"Authorization": f"Bearer {token}"}

    return make_headers


@pytest.fixture(scope="function")
def auth_headers(auth_headers_for, test_user: User) -> Dict[str, str]:
    """Authentication headers for ``test_user``."""
    return auth_headers_for(test_user)


@pytest.fixture(scope="function")
def other_auth_headers(auth_headers_for, other_user: User) -> Dict[str, str]:
    """Authentication headers for ``other_user``."""
    return auth_headers_for(other_user)


@pytest.fixture(scope="function")
def invalid_auth_headers() -> Dict[str, str]:
    """Create invalid authentication headers for testing."""
    return {"Authorization": "Bearer invalid_token"}


@pytest.fixture(scope="function")
def png_upload() -> tuple[str, bytes, str]:
    """Multipart file tuple for a small PNG cover."""
    return ("cover.png", PNG_BYTES, "image/png")


@pytest.fixture(scope="function")
def mock_userinfo():
    """Mock the identity provider's userinfo endpoint.

    Yields the mocked response so tests can change status and payload.
    """
    with patch("httpx.AsyncClient") as mock_client:
        mock_response = Mock()
        mock_response.status_code = 200
        mock_response.json.return_value = {
            "sub": "oidc|alice",
            "email": "alice@example.com",
            "given_name": "Alice",
            "family_name": "Reader",
            "picture": "https://example.com/alice.jpg",
        }

        http_client = mock_client.return_value.__aenter__.return_value
        http_client.get = AsyncMock(return_value=mock_response)
        yield mock_response
