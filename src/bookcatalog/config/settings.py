from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from pathlib import Path
from typing import Literal
from functools import lru_cache
from ..validators.config_validators import normalize_case


class Settings(BaseSettings):
    """
    Catalog settings loaded from environment (and an optional `.env` file).
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"

    # Explicit connection URL; when set it wins over the POSTGRES_* parts below.
    DATABASE_URL_OVERRIDE: str | None = None

    # Database configuration
    POSTGRES_DRIVER: str = "asyncpg"
    POSTGRES_USERNAME: str = "catalog"
    POSTGRES_PASSWORD: str = "catalog"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "books"

    # Test database configuration
    TEST_POSTGRES_DB: str | None = None
    TESTING: bool = False

    # SQLAlchemy engine / pool
    SQLALCHEMY_ECHO: bool = False
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_PRE_PING: bool = True
    # Engine-wide default; a unit of work may ask for a different level per transaction.
    DB_ISOLATION_LEVEL: str | None = None

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("/var/log/bookcatalog")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    ENABLE_SQL_LOGGING: bool = False

    # --- Derived settings ---
    @property
    def DATABASE_URL(self) -> str:
        """
        Return the connection URL for the current environment.

        - `DATABASE_URL_OVERRIDE` is returned verbatim when set (e.g. a SQLite URL
          for local runs, or a DSN injected by the deployment).
        - If `TESTING=True` and `TEST_POSTGRES_DB` is provided, the URL points at the
          test database so a test run can never touch the real catalog.
        - Otherwise the URL is assembled from the POSTGRES_* parts.
        """
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE

        database = self.POSTGRES_DB
        if self.TESTING and self.TEST_POSTGRES_DB:
            database = self.TEST_POSTGRES_DB

        return (
            f"postgresql+{self.POSTGRES_DRIVER}://"
            f"{self.POSTGRES_USERNAME}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{database}"
        )

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str | None) -> str | None:
        """Logging expects upper-case level names ("DEBUG", "INFO", ...)."""
        return normalize_case(v, upper=True)

    @field_validator("LOG_FORMAT", mode="before")
    @classmethod
    def normalize_log_format(cls, v: str | None) -> str | None:
        return normalize_case(v, upper=False)

    @field_validator("DB_ISOLATION_LEVEL", mode="before")
    @classmethod
    def normalize_isolation_level(cls, v: str | None) -> str | None:
        # SQLAlchemy spells these "READ COMMITTED", "SERIALIZABLE", ...
        if isinstance(v, str) and not v.strip():
            return None
        return normalize_case(v, upper=True)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# get_settings() takes no arguments and always returns the same settings from the environment,
# so caching it with @lru_cache() avoids re-reading the environment on every call.
@lru_cache()
def get_settings() -> Settings:
    return Settings()
