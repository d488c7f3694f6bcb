"""Database connection and session management.

This module provides SQLModel engine setup, connection pooling, session management,
and database initialization utilities for the BookSwap API.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Generator

from fastapi import FastAPI
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool, StaticPool
from sqlmodel import Session, SQLModel, create_engine

from .config import settings
from .logging_config import get_logger

# Import models to register them with SQLModel
from .models import AuthSession, Book, ExchangeRequest, User  # noqa: F401

logger = get_logger("database")


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create a database engine suited to the configured backend.

    SQLite gets a single shared connection for in-memory databases and
    ``check_same_thread`` disabled; server databases get a connection pool.

    Args:
        database_url: SQLAlchemy database URL
        echo: Log SQL statements

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    if database_url.startswith("sqlite"):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)

    return create_engine(
        database_url,
        echo=echo,
        pool_size=10,  # Number of connections to maintain in the pool
        max_overflow=20,  # Additional connections that can be created on demand
        pool_timeout=30,  # Timeout for getting connection from pool
        pool_recycle=3600,  # Recycle connections after 1 hour
        poolclass=QueuePool,
    )


engine = build_engine(settings.database_url, echo=settings.debug)


def get_session() -> Generator[Session, None, None]:
    """Dependency to get database session.

    The session is rolled back if the request handler raises and is always
    closed afterwards.

    Yields:
        Session: SQLModel database session
    """
    with Session(engine) as session:
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def create_db_and_tables() -> None:
    """Create database tables based on SQLModel definitions.

    Note:
        This function is idempotent - it won't recreate existing tables.
    """
    SQLModel.metadata.create_all(engine)


def drop_db_and_tables() -> None:
    """Drop all database tables.

    Warning:
        This function will permanently delete all data in the database.
        Only use for testing or development purposes.
    """
    SQLModel.metadata.drop_all(engine)


def ensure_upload_dir() -> Path:
    """Create the cover upload directory if it does not exist yet."""
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """FastAPI lifespan context manager for database initialization.

    Creates tables and the upload directory on startup and disposes of the
    connection pool on shutdown.

    Args:
        app: FastAPI application instance
    """
    create_db_and_tables()
    ensure_upload_dir()
    logger.info("Database initialised", extra={"database": get_database_info()["url"]})
    yield
    engine.dispose()


def get_database_info() -> dict[str, Any]:
    """Get database connection information for health checks.

    Returns:
        dict: Database URL (credentials hidden) and pool status when pooled
    """
    info: dict[str, Any] = {
        "url": settings.database_url.split("@")[-1] if "@" in settings.database_url else settings.database_url,
        "pool": type(engine.pool).__name__,
    }
    if isinstance(engine.pool, QueuePool):
        info.update(
            {
                "pool_size": engine.pool.size(),
                "checked_in": engine.pool.checkedin(),
                "checked_out": engine.pool.checkedout(),
                "overflow": engine.pool.overflow(),
            }
        )
    return info


def check_database_connection(session: Session | None = None) -> bool:
    """Check that the database answers a trivial query.

    Args:
        session: Session to check; a fresh one on the module engine when omitted

    Returns:
        bool: True if connection is successful, False otherwise
    """
    try:
        if session is not None:
            session.execute(text("SELECT 1"))
            return True
        with Session(engine) as own_session:
            own_session.execute(text("SELECT 1"))
            return True
    except SQLAlchemyError:
        logger.warning("Database connectivity check failed", exc_info=True)
        return False
