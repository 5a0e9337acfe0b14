"""
Connection provider for the catalog.

Owns the AsyncEngine and the session factory. Repositories never build engines
themselves; they ask the provider for a session (reads) or a unit of work
(writes) and hand it back when done.

    provider = ConnectionProvider(get_settings())
    async with provider.unit_of_work("title.create") as uow:
        await uow.session.execute(...)
    await provider.shutdown()
"""
from __future__ import annotations

import logging
import threading
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from bookcatalog.config.settings import Settings, get_settings
from bookcatalog.database.base import Base
from bookcatalog.exceptions.base import ConnectivityError
from bookcatalog.exceptions.mapper import translate_db_error

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores FOREIGN KEY clauses unless asked per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class ConnectionProvider:
    """
    Lazily builds one AsyncEngine per provider and hands out sessions bound to it.

    `url` takes precedence over `settings.DATABASE_URL`; tests use it to point a
    provider at a throwaway SQLite file.
    """

    def __init__(self, settings: Settings | None = None, *, url: str | None = None):
        self.settings = settings or get_settings()
        self.url = url or self.settings.DATABASE_URL
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None
        self._lock = threading.Lock()
        self._closed = False

    @property
    def backend(self) -> str:
        return make_url(self.url).get_backend_name()

    @property
    def safe_url(self) -> str:
        """URL with the password masked, for logs."""
        return make_url(self.url).render_as_string(hide_password=True)

    def init(self) -> AsyncEngine:
        """Create the engine and session factory if they do not exist yet."""
        with self._lock:
            if self._engine is None:
                self._engine = self._build_engine()
                self._sessionmaker = async_sessionmaker(
                    bind=self._engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                )
                logger.info("provider.engine_created", extra={"url": self.safe_url, "backend": self.backend})
            self._closed = False
            return self._engine

    def _build_engine(self) -> AsyncEngine:
        kwargs: dict = {
            "echo": self.settings.SQLALCHEMY_ECHO,
            "pool_pre_ping": self.settings.DB_POOL_PRE_PING,
        }
        if self.backend != "sqlite":
            kwargs["pool_size"] = self.settings.DB_POOL_SIZE
            kwargs["max_overflow"] = self.settings.DB_MAX_OVERFLOW
        if self.settings.DB_ISOLATION_LEVEL:
            kwargs["isolation_level"] = self.settings.DB_ISOLATION_LEVEL

        engine = create_async_engine(self.url, **kwargs)
        if self.backend == "sqlite":
            event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    @property
    def engine(self) -> AsyncEngine:
        return self._engine if self._engine is not None else self.init()

    async def acquire(self, *, isolation_level: str | None = None) -> AsyncSession:
        """
        Return a new session with a connection already checked out.

        The checkout happens here, not on first query, so an unreachable
        database is reported as ConnectivityError before any work starts.
        """
        if self._closed:
            raise ConnectivityError("Connection provider has been shut down")
        if self._sessionmaker is None:
            self.init()

        with self._lock:
            maker = self._sessionmaker
        if maker is None:
            # shutdown() ran after the check above
            raise ConnectivityError("Connection provider has been shut down")
        session = maker()
        try:
            if isolation_level:
                await session.connection(execution_options={"isolation_level": isolation_level})
            else:
                await session.connection()
        except Exception as exc:
            await self.release(session)
            error = translate_db_error(exc, "database")
            if not isinstance(error, ConnectivityError):
                error = ConnectivityError(f"Could not connect to {self.safe_url}")
                error.__cause__ = exc
            logger.error("provider.acquire_failed", extra={"url": self.safe_url, "error_type": type(exc).__name__})
            raise error from exc
        return session

    async def release(self, session: AsyncSession) -> None:
        """Close the session, returning its connection to the pool. Failures are logged only."""
        try:
            await session.close()
        except Exception:
            logger.warning("provider.release_failed", exc_info=True)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Read-side session; nothing is committed."""
        session = await self.acquire()
        try:
            yield session
        finally:
            await self.release(session)

    def unit_of_work(self, name: str, *, isolation_level: str | None = None, model_name: str | None = None):
        from bookcatalog.database.unit_of_work import UnitOfWork

        return UnitOfWork(self, name, isolation_level=isolation_level, model_name=model_name)

    # -----------------------
    # Schema bootstrap
    # -----------------------
    async def create_schema(self) -> None:
        """Create the three catalog tables if missing."""
        import bookcatalog.models  # noqa: F401  registers tables on Base.metadata

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("provider.schema_created", extra={"tables": sorted(Base.metadata.tables)})

    async def drop_schema(self) -> None:
        import bookcatalog.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("provider.schema_dropped")

    async def shutdown(self) -> None:
        """Dispose of the pool. Later `acquire()` calls fail until `init()` runs again."""
        with self._lock:
            engine, self._engine = self._engine, None
            self._sessionmaker = None
            self._closed = True
        if engine is not None:
            await engine.dispose()
            logger.info("provider.shutdown", extra={"url": self.safe_url})
