"""Login session model.

Every issued access token is backed by a row in the ``sessions`` table so that
logging out revokes the token before it expires.
"""

from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field, Column, String, DateTime, Index
from sqlalchemy import func


class AuthSession(SQLModel, table=True):
    """Server-side record of an issued access token."""

    __tablename__ = "sessions"

    sid: str = Field(
        description="Session identifier embedded in the token",
        sa_column=Column(String(64), primary_key=True)
    )
    user_id: int = Field(foreign_key="users.id", index=True)
    expire: datetime = Field(
        description="Session expiry",
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    created_at: Optional[datetime] = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )

    __table_args__ = (
        Index("idx_sessions_expire", "expire"),
    )
