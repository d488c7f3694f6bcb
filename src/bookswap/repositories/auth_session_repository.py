"""Login session repository.

Stores one row per issued access token; a token is honoured only while its
row exists and has not expired.
"""

import secrets
from datetime import datetime
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, and_, select

from ..models.auth_session import AuthSession


class AuthSessionRepositoryError(Exception):
    """Raised when a session row cannot be read or written."""

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


class AuthSessionRepository:
    """Repository for server-side login sessions."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, user_id: int, expires_at: datetime) -> AuthSession:
        """Open a new session for a user.

        Args:
            user_id: Owner of the session
            expires_at: Naive UTC expiry timestamp

        Returns:
            AuthSession: The stored session with a freshly generated sid
        """
        try:
            auth_session = AuthSession(
                sid=secrets.token_hex(32),
                user_id=user_id,
                expire=expires_at,
            )
            self.session.add(auth_session)
            self.session.commit()
            self.session.refresh(auth_session)
            return auth_session
        except SQLAlchemyError as e:
            self.session.rollback()
            raise AuthSessionRepositoryError(
                f"Failed to create session for user {user_id}: {str(e)}",
                original_error=e
            ) from e

    def get_active(self, sid: str, now: Optional[datetime] = None) -> Optional[AuthSession]:
        """Get a session that exists and has not expired yet.

        Args:
            sid: Session identifier
            now: Reference time (naive UTC), defaults to the current time

        Returns:
            AuthSession if active, None otherwise
        """
        now = now or datetime.utcnow()
        try:
            statement = select(AuthSession).where(
                and_(AuthSession.sid == sid, AuthSession.expire > now)
            )
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise AuthSessionRepositoryError(
                f"Failed to load session: {str(e)}",
                original_error=e
            ) from e

    def delete(self, sid: str) -> bool:
        """Delete a session.

        Returns:
            bool: True if a session was removed, False if it did not exist
        """
        try:
            auth_session = self.session.get(AuthSession, sid)
            if auth_session is None:
                return False
            self.session.delete(auth_session)
            self.session.commit()
            return True
        except SQLAlchemyError as e:
            self.session.rollback()
            raise AuthSessionRepositoryError(
                f"Failed to delete session: {str(e)}",
                original_error=e
            ) from e

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Delete every expired session.

        Returns:
            int: Number of sessions removed
        """
        now = now or datetime.utcnow()
        try:
            result = self.session.execute(
                delete(AuthSession).where(AuthSession.expire <= now)
            )
            self.session.commit()
            return result.rowcount or 0
        except SQLAlchemyError as e:
            self.session.rollback()
            raise AuthSessionRepositoryError(
                f"Failed to purge expired sessions: {str(e)}",
                original_error=e
            ) from e
