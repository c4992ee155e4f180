"""
Shared pytest fixtures and configuration for all tests.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
from collections.abc import AsyncGenerator, Generator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

# Add src directory to path so imports work without an install
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402

if TYPE_CHECKING:
    from psycopg import Connection  # type: ignore[import]

PROJECT_DIR = Path(__file__).parent.parent


def find_pg_ctl() -> str | None:
    """Locate ``pg_ctl`` on PATH or in the bindir reported by ``pg_config``.

    ``pg_config`` alone ships with the client headers and is not a server.
    """
    pg_ctl = shutil.which("pg_ctl")
    if pg_ctl:
        return pg_ctl

    pg_config = shutil.which("pg_config")
    if not pg_config:
        return None
    try:
        bindir = subprocess.run(
            [pg_config, "--bindir"], capture_output=True, text=True, check=True
        ).stdout.strip()
    except (OSError, subprocess.CalledProcessError):
        return None

    candidate = Path(bindir) / "pg_ctl"
    if candidate.is_file() and os.access(candidate, os.X_OK):
        return str(candidate)
    return None


def _postgres_available() -> bool:
    return find_pg_ctl() is not None


def _dsn_from_connection(postgresql: Connection[Any]) -> str:
    info = postgresql.info
    return (
        f"postgresql://{info.user}:{getattr(info, 'password', '') or ''}"
        f"@{info.host}:{info.port}/{info.dbname}"
    )


@pytest.fixture(scope="function")
def test_database(postgresql: Connection[Any]) -> Generator[tuple[str, str], None, None]:
    """Return the DSN for the running pytest-postgresql database."""
    yield _dsn_from_connection(postgresql), postgresql.info.dbname


@pytest.fixture(scope="function")
def alembic_migrate(test_database: tuple[str, str]) -> Generator[None, None, None]:
    """Run Alembic upgrade to head against the pytest-postgresql instance."""
    dsn, _ = test_database

    os.environ["PATIENTQL_DATABASE_URL"] = dsn
    cfg = Config(str(PROJECT_DIR / "alembic.ini"))
    command.upgrade(cfg, "head")
    yield
    command.downgrade(cfg, "base")


@pytest_asyncio.fixture(scope="function")
async def database(alembic_migrate: None, test_database: tuple[str, str]) -> Any:
    """A migrated database wrapped in the application's Database handle."""
    _ = alembic_migrate
    from patientql.database import Database

    dsn, _ = test_database
    db = Database(dsn, pool_size=5, max_overflow=5)
    yield db
    await db.dispose()


@pytest_asyncio.fixture(scope="function")
async def repository(database: Any) -> Any:
    from patientql.repository import PatientRepository

    return PatientRepository(database)


@pytest.fixture
def mock_session() -> AsyncMock:
    """An AsyncSession double; sync methods such as ``add`` are plain mocks."""
    return AsyncMock(spec=AsyncSession)


@pytest.fixture
def mock_database(mock_session: AsyncMock) -> MagicMock:
    """A Database double whose ``session()`` yields ``mock_session``.

    Mirrors Database.session: commit on success, rollback and re-raise on error.
    """
    from patientql.database import Database

    @asynccontextmanager
    async def session() -> AsyncGenerator[AsyncMock, None]:
        try:
            yield mock_session
            await mock_session.commit()
        except Exception:
            await mock_session.rollback()
            raise

    database = MagicMock(spec=Database)
    database.session = session
    return database


@pytest.fixture
def mock_repository() -> AsyncMock:
    from patientql.repository import PatientRepository

    return AsyncMock(spec=PatientRepository)


@pytest.fixture(autouse=True)
def reset_environment() -> Generator[None, None, None]:
    """Reset environment variables for each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)


# Test markers
def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "requires_db: mark test as requiring a PostgreSQL server"
    )
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")


def pytest_collection_modifyitems(config: Any, items: list[pytest.Item]) -> None:
    if _postgres_available():
        return
    skip_db = pytest.mark.skip(reason="PostgreSQL binaries (pg_ctl) not found")
    for item in items:
        if "requires_db" in item.keywords:
            item.add_marker(skip_db)
