"""Unit tests for UserService.

This module contains tests for UserService: upserting users from identity
provider profiles, loading users, and opening and closing login sessions.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, Mock

import pytest
from sqlmodel import Session

from bookswap.models.user import User, UserResponse
from bookswap.repositories.user_repository import UserRepository, UserRepositoryError
from bookswap.schemas.auth_schemas import IdentityProfile
from bookswap.services.user_service import UserService, UserServiceError


class TestUserService:
    """Test cases for UserService against the test database."""

    @pytest.fixture
    def user_service(self, test_session: Session) -> UserService:
        """Create UserService instance for testing."""
        return UserService(test_session)

    async def test_upsert_from_profile_creates_user(
        self, user_service: UserService, sample_profile: IdentityProfile
    ):
        user = await user_service.upsert_from_profile(sample_profile)

        assert isinstance(user, UserResponse)
        assert user.subject == sample_profile.sub
        assert user.email == sample_profile.email
        assert user.first_name == "Alice"
        assert user.last_name == "Reader"
        assert user.profile_image_url == "https://example.com/alice.jpg"

    async def test_upsert_from_profile_is_idempotent(
        self, user_service: UserService, sample_profile: IdentityProfile
    ):
        first = await user_service.upsert_from_profile(sample_profile)
        second = await user_service.upsert_from_profile(sample_profile)

        assert first.id == second.id

    async def test_upsert_from_profile_email_conflict(
        self, user_service: UserService, other_user: User
    ):
        profile = IdentityProfile(sub="oidc|someone", email=other_user.email)

        with pytest.raises(UserServiceError) as exc_info:
            await user_service.upsert_from_profile(profile)

        assert exc_info.value.status_code == 409
        assert "already linked" in exc_info.value.message

    async def test_get_user_by_id(self, user_service: UserService, test_user: User):
        user = await user_service.get_user_by_id(test_user.id)

        assert user is not None
        assert user.id == test_user.id

    async def test_get_user_by_id_not_found(self, user_service: UserService):
        assert await user_service.get_user_by_id(12345) is None

    async def test_get_user_by_id_repository_error(self):
        """Test repository failures surface as 500."""
        user_service = UserService(Mock(spec=Session))
        user_service.repository = Mock(spec=UserRepository)
        user_service.repository.get_by_id = AsyncMock(
            side_effect=UserRepositoryError("Database error")
        )

        with pytest.raises(UserServiceError) as exc_info:
            await user_service.get_user_by_id(1)

        assert exc_info.value.status_code == 500
        assert "Failed to get user" in exc_info.value.message

    def test_session_lifecycle(self, user_service: UserService, test_user: User):
        session_id = user_service.open_session(test_user.id, timedelta(hours=1))

        assert user_service.is_session_active(session_id, test_user.id) is True

        assert user_service.end_session(session_id) is True
        assert user_service.is_session_active(session_id, test_user.id) is False
        assert user_service.end_session(session_id) is False

    def test_session_belongs_to_user(
        self, user_service: UserService, test_user: User, other_user: User
    ):
        session_id = user_service.open_session(test_user.id, timedelta(hours=1))

        assert user_service.is_session_active(session_id, other_user.id) is False

    def test_expired_session_is_inactive(self, user_service: UserService, test_user: User):
        session_id = user_service.open_session(test_user.id, timedelta(seconds=-1))

        assert user_service.is_session_active(session_id, test_user.id) is False

    def test_open_session_purges_expired(self, user_service: UserService, test_user: User):
        stale = user_service.open_session(test_user.id, timedelta(seconds=-1))

        user_service.open_session(test_user.id, timedelta(hours=1))

        # The stale row is gone, not merely expired
        assert user_service.end_session(stale) is False
