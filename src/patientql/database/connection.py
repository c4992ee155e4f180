"""
Database connection management
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ..logging import get_logger

if TYPE_CHECKING:
    from ..config import Settings

logger = get_logger(__name__)

ASYNC_DRIVER = "postgresql+asyncpg"
_POSTGRES_DRIVERS = {"postgres", "postgresql", "postgresql+psycopg2", "postgresql+psycopg"}


def to_async_url(database_url: str) -> URL:
    """Normalize a PostgreSQL connection string for the asyncpg driver.

    Accepts ``postgres://`` and ``postgresql://`` URLs, and rewrites the libpq
    ``sslmode`` query parameter to asyncpg's ``ssl`` argument.
    """
    url = make_url(database_url)
    if url.drivername in _POSTGRES_DRIVERS:
        url = url.set(drivername=ASYNC_DRIVER)

    sslmode = url.query.get("sslmode")
    if sslmode is not None and url.drivername == ASYNC_DRIVER:
        url = url.difference_update_query(["sslmode"]).update_query_dict({"ssl": sslmode})

    return url


class Database:
    """Process-wide database handle: one async engine and its session factory.

    Created once at application startup and handed to the storage client;
    every request opens its own session from it.
    """

    def __init__(
        self,
        database_url: str,
        *,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
    ) -> None:
        self.url = to_async_url(database_url)
        self.engine: AsyncEngine = create_async_engine(
            self.url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            echo=echo,
        )
        self.sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings, database_url: str | None = None) -> Database:
        from ..config import get_database_url

        return cls(
            database_url or get_database_url(),
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            echo=settings.sql_echo,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session; commit on success, roll back on any error."""
        async with self.sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def test_connection(self) -> tuple[bool, str | None]:
        """
        Test the database connection and return helpful error messages.

        Returns:
            tuple: (success: bool, error_message: str | None)
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True, None
        except Exception as e:
            return False, describe_connection_error(e, self.url.database)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")


def describe_connection_error(error: Exception, database_name: str | None) -> str:
    """Turn a driver connection error into an actionable message."""
    error_str = str(error)
    error_type = type(error).__name__

    if "does not exist" in error_str:
        return (
            f"Cannot connect to database: {error_str}\n"
            f"This usually means:\n"
            f"  1. The database '{database_name}' doesn't exist\n"
            f"  2. The database user/role doesn't exist\n"
            f"Please check your connection string and run migrations if needed."
        )
    elif "Connection refused" in error_str or "could not connect" in error_str:
        return (
            f"Cannot connect to database server: {error_str}\n"
            f"The database server appears to be down or unreachable.\n"
            f"Please check that PostgreSQL is running and accessible."
        )
    elif "password authentication failed" in error_str:
        return (
            f"Database authentication failed: {error_str}\n"
            f"Please check your database credentials."
        )
    return f"Database connection error ({error_type}): {error_str}"
