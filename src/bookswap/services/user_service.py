"""User service for business logic operations.

This module provides business logic for users and their login sessions:
creating or refreshing users from identity provider profiles, loading the
current user, and opening and closing server-side sessions.
"""

from datetime import datetime, timedelta

from sqlmodel import Session

from ..logging_config import get_logger
from ..models.user import UserResponse, UserUpsert
from ..repositories.auth_session_repository import (
    AuthSessionRepository,
    AuthSessionRepositoryError,
)
from ..repositories.user_repository import (
    UserAlreadyExistsError,
    UserRepository,
    UserRepositoryError,
)
from ..schemas.auth_schemas import IdentityProfile

logger = get_logger("user_service")


class UserServiceError(Exception):
    """Base exception for user service errors."""

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


class UserService:
    """Service for user and login session operations."""

    def __init__(self, session: Session) -> None:
        """Initialize user service with database session.

        Args:
            session: SQLModel database session
        """
        self.session = session
        self.repository = UserRepository(session)
        self.sessions = AuthSessionRepository(session)

    async def get_user_by_id(self, user_id: int) -> UserResponse | None:
        """Get user by ID.

        Args:
            user_id: User ID to search for

        Returns:
            UserResponse if found, None otherwise

        Raises:
            UserServiceError: If operation fails
        """
        try:
            user = await self.repository.get_by_id(user_id)
            if not user:
                return None
            return UserResponse.model_validate(user)
        except UserRepositoryError as e:
            raise UserServiceError(
                f"Failed to get user: {e.message}", status_code=500, original_error=e
            ) from e

    async def upsert_from_profile(self, profile: IdentityProfile) -> UserResponse:
        """Create the user for a provider profile, or refresh the stored one.

        Args:
            profile: Claims returned by the identity provider

        Returns:
            The stored user

        Raises:
            UserServiceError: 409 if the email belongs to another account,
                500 on database failure
        """
        user_data = UserUpsert(
            subject=profile.sub,
            email=profile.email,
            first_name=profile.given_name,
            last_name=profile.family_name,
            profile_image_url=profile.picture,
        )

        try:
            user = await self.repository.upsert(user_data)
        except UserAlreadyExistsError as e:
            raise UserServiceError(e.message, status_code=409, original_error=e) from e
        except UserRepositoryError as e:
            raise UserServiceError(
                f"Failed to save user: {e.message}", status_code=500, original_error=e
            ) from e

        logger.info(
            f"User {user.id} signed in",
            extra={"user_id": user.id, "subject": user.subject},
        )
        return UserResponse.model_validate(user)

    def open_session(self, user_id: int, lifetime: timedelta) -> str:
        """Open a login session and return its identifier.

        Expired sessions are purged on the way.
        """
        try:
            self.sessions.purge_expired()
            auth_session = self.sessions.create(user_id, datetime.utcnow() + lifetime)
            return auth_session.sid
        except AuthSessionRepositoryError as e:
            raise UserServiceError(
                f"Failed to open session: {e.message}", status_code=500, original_error=e
            ) from e

    def is_session_active(self, session_id: str, user_id: int) -> bool:
        """Check that a session exists, has not expired and belongs to the user."""
        try:
            auth_session = self.sessions.get_active(session_id)
        except AuthSessionRepositoryError as e:
            raise UserServiceError(
                f"Failed to load session: {e.message}", status_code=500, original_error=e
            ) from e
        return auth_session is not None and auth_session.user_id == user_id

    def end_session(self, session_id: str) -> bool:
        """Close a login session (logout).

        Returns:
            bool: True if a session was closed
        """
        try:
            return self.sessions.delete(session_id)
        except AuthSessionRepositoryError as e:
            raise UserServiceError(
                f"Failed to close session: {e.message}", status_code=500, original_error=e
            ) from e
