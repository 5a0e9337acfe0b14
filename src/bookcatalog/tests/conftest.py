"""
Core pytest configuration for the catalog test suite.

Only the database and logging setup shared by every test lives here.
Domain fixtures (repositories, sample data) are in:
- tests/test_fixtures/repository_fixtures.py

Each test gets its own ConnectionProvider bound to a fresh SQLite file under
`tmp_path`, so units of work commit for real and nothing leaks between tests.
Set `TEST_DATABASE_URL` to run the same suite against another server; the
schema is then created and dropped around each test.
"""

from __future__ import annotations

# -------------------------------
# Standard library imports
# -------------------------------
import os
import sys
import logging
from pathlib import Path
from typing import AsyncGenerator

# -------------------------------
# Early logging tuning (IMPORTANT)
# -------------------------------
# Keep this block above the project imports so collection stays quiet.
NOISY_LOGGERS = (
    "faker",
    "faker.factory",
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "aiosqlite",
    "asyncio",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

# ------------------------------------------------------------------------------------------------
# PATH PATCHING
# ------------------------------------------------------------------------------------------------

# Ensure 'src' on sys.path so `import bookcatalog...` works without an install
SRC = Path(__file__).resolve().parents[2]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# -------------------------------
# Third-party / project imports
# -------------------------------
import pytest

from bookcatalog.config.settings import Settings
from bookcatalog.core.logging.builder import setup_logging
from bookcatalog.database.provider import ConnectionProvider

logger = logging.getLogger(__name__)


def make_test_settings(**overrides) -> Settings:
    """Settings isolated from the developer's environment defaults that matter here."""
    values = {
        "ENV": "testing",
        "TESTING": True,
        "LOG_TO_STDOUT": True,
        "LOG_FORMAT": "text",
        "LOG_LEVEL": "DEBUG",
        "SQLALCHEMY_ECHO": False,
        "DB_ISOLATION_LEVEL": None,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return make_test_settings()


# The `autouse=True` part means every test gets the catalog's logging configuration.
@pytest.fixture(scope="session", autouse=True)
def configure_logging(test_settings: Settings):
    """
    Install the catalog's dictConfig once per session.

    pytest's caplog handler is attached per test on top of this, so
    `caplog.records` keeps working.
    """
    setup_logging(test_settings)
    yield


# ------------------------------------------------------------------------------------------------
# DATABASE FIXTURES
# ------------------------------------------------------------------------------------------------


@pytest.fixture()
def database_url(tmp_path: Path) -> str:
    """`TEST_DATABASE_URL` when set, otherwise a throwaway SQLite file for this test."""
    if test_url := os.getenv("TEST_DATABASE_URL"):
        return test_url
    return f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}"


@pytest.fixture()
async def provider(test_settings: Settings, database_url: str) -> AsyncGenerator[ConnectionProvider, None]:
    """A provider with the three catalog tables created; disposed after the test."""
    provider = ConnectionProvider(test_settings, url=database_url)
    await provider.create_schema()

    yield provider

    if os.getenv("TEST_DATABASE_URL"):
        provider.init()
        await provider.drop_schema()
    await provider.shutdown()


# Repository test fixtures
from .test_fixtures.repository_fixtures import (  # noqa: E402
    author_repository,
    title_repository,
    catalog_service,
    fake_author,
    make_author,
    seeded_authors,
    sample_title,
)
