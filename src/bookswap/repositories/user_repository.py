"""User repository for database operations.

This module provides data access for users created from identity provider
profiles, keyed on the provider's subject identifier.
"""

from typing import Optional
from sqlmodel import Session, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..models.user import User, UserUpsert


class UserRepositoryError(Exception):
    """Base exception for user repository errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


class UserAlreadyExistsError(UserRepositoryError):
    """Raised when a unique user attribute (email) is taken by another subject."""
    pass


class UserRepository:
    """Repository for user database operations."""

    def __init__(self, session: Session) -> None:
        """Initialize user repository with database session.

        Args:
            session: SQLModel database session
        """
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID.

        Args:
            user_id: User ID to search for

        Returns:
            User if found, None otherwise

        Raises:
            UserRepositoryError: If database operation fails
        """
        try:
            return self.session.get(User, user_id)
        except SQLAlchemyError as e:
            raise UserRepositoryError(
                f"Failed to get user by ID {user_id}: {str(e)}",
                original_error=e
            ) from e

    async def get_by_subject(self, subject: str) -> Optional[User]:
        """Get user by identity provider subject.

        Args:
            subject: Provider subject to search for

        Returns:
            User if found, None otherwise

        Raises:
            UserRepositoryError: If database operation fails
        """
        try:
            statement = select(User).where(User.subject == subject)
            result = self.session.exec(statement)
            return result.first()
        except SQLAlchemyError as e:
            raise UserRepositoryError(
                f"Failed to get user by subject {subject}: {str(e)}",
                original_error=e
            ) from e

    async def upsert(self, user_data: UserUpsert) -> User:
        """Create the user for a subject, or refresh its profile fields.

        Args:
            user_data: Profile data keyed by subject

        Returns:
            The created or updated user

        Raises:
            UserAlreadyExistsError: If the email belongs to another subject
            UserRepositoryError: If database operation fails
        """
        try:
            user = await self.get_by_subject(user_data.subject)
            if user is None:
                user = User(**user_data.model_dump())
            else:
                for field, value in user_data.model_dump(exclude={"subject"}).items():
                    setattr(user, field, value)

            self.session.add(user)
            self.session.commit()
            self.session.refresh(user)
            return user

        except IntegrityError as e:
            self.session.rollback()
            raise UserAlreadyExistsError(
                f"Email {user_data.email} is already linked to another account",
                original_error=e
            ) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise UserRepositoryError(
                f"Failed to upsert user {user_data.subject}: {str(e)}",
                original_error=e
            ) from e
