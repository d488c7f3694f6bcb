"""Unit tests for UserRepository and AuthSessionRepository.

This module contains tests for user upserts keyed on the identity provider
subject and for the server-side login session table.
"""

from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from bookswap.models.user import User, UserUpsert
from bookswap.repositories.auth_session_repository import (
    AuthSessionRepository,
    AuthSessionRepositoryError,
)
from bookswap.repositories.user_repository import (
    UserAlreadyExistsError,
    UserRepository,
    UserRepositoryError,
)


class TestUserRepository:
    """Test cases for UserRepository."""

    @pytest.fixture
    def repository(self, test_session: Session) -> UserRepository:
        return UserRepository(test_session)

    async def test_upsert_creates_user(self, repository: UserRepository):
        """Test a new subject creates a user."""
        user = await repository.upsert(
            UserUpsert(subject="oidc|new", email="new@example.com", first_name="New")
        )

        assert user.id is not None
        assert user.subject == "oidc|new"
        assert user.created_at is not None

    async def test_upsert_updates_existing_user(self, repository: UserRepository, test_user: User):
        """Test a known subject refreshes the stored profile."""
        user = await repository.upsert(
            UserUpsert(
                subject=test_user.subject,
                email="changed@example.com",
                first_name="Changed",
                profile_image_url="https://example.com/new.png",
            )
        )

        assert user.id == test_user.id
        assert user.email == "changed@example.com"
        assert user.first_name == "Changed"
        assert user.last_name is None
        assert user.profile_image_url == "https://example.com/new.png"

    async def test_upsert_duplicate_email(
        self, repository: UserRepository, test_user: User
    ):
        with pytest.raises(UserAlreadyExistsError):
            await repository.upsert(UserUpsert(subject="oidc|other", email=test_user.email))

    async def test_upsert_allows_missing_email_for_many_users(self, repository: UserRepository):
        first = await repository.upsert(UserUpsert(subject="oidc|one"))
        second = await repository.upsert(UserUpsert(subject="oidc|two"))

        assert first.id != second.id

    async def test_get_by_id(self, repository: UserRepository, test_user: User):
        user = await repository.get_by_id(test_user.id)

        assert user is not None
        assert user.subject == test_user.subject

    async def test_get_by_id_not_found(self, repository: UserRepository):
        assert await repository.get_by_id(999) is None

    async def test_get_by_subject(self, repository: UserRepository, test_user: User):
        user = await repository.get_by_subject("oidc|alice")

        assert user is not None
        assert user.id == test_user.id
        assert await repository.get_by_subject("oidc|nobody") is None

    async def test_get_by_id_database_error(self):
        """Test database errors are wrapped."""
        session = Mock(spec=Session)
        session.get.side_effect = SQLAlchemyError("connection lost")

        with pytest.raises(UserRepositoryError, match="Failed to get user by ID 1"):
            await UserRepository(session).get_by_id(1)


class TestUserModel:
    """Tests for User helpers."""

    def test_display_name_prefers_full_name(self):
        user = User(subject="s", email="a@example.com", first_name="Ada", last_name="Lovelace")
        assert user.display_name == "Ada Lovelace"

    def test_display_name_falls_back_to_email_then_subject(self):
        assert User(subject="s", email="a@example.com").display_name == "a@example.com"
        assert User(subject="oidc|s").display_name == "oidc|s"


class TestAuthSessionRepository:
    """Test cases for AuthSessionRepository."""

    @pytest.fixture
    def repository(self, test_session: Session) -> AuthSessionRepository:
        return AuthSessionRepository(test_session)

    def test_create_generates_unique_ids(self, repository: AuthSessionRepository, test_user: User):
        expires = datetime.utcnow() + timedelta(hours=1)

        first = repository.create(test_user.id, expires)
        second = repository.create(test_user.id, expires)

        assert len(first.sid) == 64
        assert first.sid != second.sid

    def test_get_active(self, repository: AuthSessionRepository, test_user: User):
        auth_session = repository.create(test_user.id, datetime.utcnow() + timedelta(hours=1))

        found = repository.get_active(auth_session.sid)

        assert found is not None
        assert found.user_id == test_user.id

    def test_get_active_ignores_expired(self, repository: AuthSessionRepository, test_user: User):
        auth_session = repository.create(test_user.id, datetime.utcnow() + timedelta(minutes=5))

        later = datetime.utcnow() + timedelta(minutes=10)
        assert repository.get_active(auth_session.sid, now=later) is None

    def test_delete(self, repository: AuthSessionRepository, test_user: User):
        sid = repository.create(test_user.id, datetime.utcnow() + timedelta(hours=1)).sid

        assert repository.delete(sid) is True
        assert repository.delete(sid) is False
        assert repository.get_active(sid) is None

    def test_purge_expired(self, repository: AuthSessionRepository, test_user: User):
        now = datetime.utcnow()
        expired_sid = repository.create(test_user.id, now - timedelta(minutes=1)).sid
        active_sid = repository.create(test_user.id, now + timedelta(hours=1)).sid

        assert repository.purge_expired(now) == 1
        assert repository.get_active(active_sid, now) is not None
        assert repository.get_active(expired_sid, now - timedelta(hours=1)) is None

    def test_create_database_error(self):
        session = Mock(spec=Session)
        session.commit.side_effect = SQLAlchemyError("disk full")

        with pytest.raises(AuthSessionRepositoryError, match="Failed to create session"):
            AuthSessionRepository(session).create(1, datetime.utcnow())

        session.rollback.assert_called_once()
