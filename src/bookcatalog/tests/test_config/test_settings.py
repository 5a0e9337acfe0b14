import pytest
from pydantic import ValidationError as PydanticValidationError

from bookcatalog.config.settings import Settings, get_settings


def test_override_url_wins():
    settings = Settings(DATABASE_URL_OVERRIDE="sqlite+aiosqlite:///catalog.db", POSTGRES_DB="ignored")
    assert settings.DATABASE_URL == "sqlite+aiosqlite:///catalog.db"


def test_postgres_url_assembled_from_parts():
    settings = Settings(
        DATABASE_URL_OVERRIDE=None,
        POSTGRES_USERNAME="u",
        POSTGRES_PASSWORD="p",
        POSTGRES_HOST="db",
        POSTGRES_PORT=6543,
        POSTGRES_DB="books",
    )
    assert settings.DATABASE_URL == "postgresql+asyncpg://u:p@db:6543/books"


def test_testing_switches_database_name():
    settings = Settings(DATABASE_URL_OVERRIDE=None, TESTING=True, TEST_POSTGRES_DB="books_test")
    assert settings.DATABASE_URL.endswith("/books_test")


def test_log_settings_are_normalised():
    settings = Settings(LOG_LEVEL=" debug ", LOG_FORMAT="JSON", DB_ISOLATION_LEVEL="serializable")
    assert settings.LOG_LEVEL == "DEBUG"
    assert settings.LOG_FORMAT == "json"
    assert settings.DB_ISOLATION_LEVEL == "SERIALIZABLE"


def test_blank_isolation_level_means_engine_default():
    assert Settings(DB_ISOLATION_LEVEL="  ").DB_ISOLATION_LEVEL is None


def test_unknown_log_level_rejected():
    with pytest.raises(PydanticValidationError):
        Settings(LOG_LEVEL="chatty")


def test_environment_variables_are_read(monkeypatch):
    monkeypatch.setenv("POSTGRES_HOST", "catalog-db")
    monkeypatch.setenv("DB_POOL_SIZE", "12")
    settings = Settings(DATABASE_URL_OVERRIDE=None)

    assert settings.DB_POOL_SIZE == 12
    assert "@catalog-db:" in settings.DATABASE_URL


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()
    get_settings.cache_clear()
