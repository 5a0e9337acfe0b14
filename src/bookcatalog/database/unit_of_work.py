"""
Unit of work: one session, one transaction, commit or roll back as a whole.

    async with provider.unit_of_work("title.create") as uow:
        await uow.session.execute(insert_title)
        result = await uow.session.execute(insert_links, rows)
        if result.rowcount != len(rows):
            uow.rollback()

| Block exit                        | Effect                                       |
| --------------------------------- | -------------------------------------------- |
| normal, not aborted               | commit; commit failure -> rollback + raise   |
| normal, `rollback()` was called   | rollback, nothing raised                     |
| Exception                         | rollback, raise translated RepositoryError   |
| BaseException (cancellation, ...) | rollback, re-raise as is                     |

A failing rollback is logged and swallowed so the original error is the one
the caller sees. The session is released in every case.
"""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession

from bookcatalog.core.logging.filters import new_operation_id, reset_operation_id, set_operation_id
from bookcatalog.exceptions.base import RepositoryError
from bookcatalog.exceptions.mapper import translate_db_error

if TYPE_CHECKING:
    from bookcatalog.database.provider import ConnectionProvider

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(self, provider: ConnectionProvider, name: str, *, isolation_level: str | None = None,
                 model_name: str | None = None):
        self.provider = provider
        self.name = name
        self.isolation_level = isolation_level
        self.model_name = model_name
        self.operation_id: str | None = None
        self._session: AsyncSession | None = None
        self._aborted = False
        self._token = None
        self._started = 0.0

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("UnitOfWork used outside its 'async with' block")
        return self._session

    @property
    def aborted(self) -> bool:
        return self._aborted

    def rollback(self) -> None:
        """Mark the unit for rollback; it happens when the block exits."""
        self._aborted = True

    async def __aenter__(self) -> UnitOfWork:
        self.operation_id = new_operation_id()
        self._token = set_operation_id(self.operation_id)
        self._started = time.perf_counter()
        try:
            self._session = await self.provider.acquire(isolation_level=self.isolation_level)
        except BaseException:
            reset_operation_id(self._token)
            raise
        logger.debug("uow.begin", extra={"unit": self.name, "isolation_level": self.isolation_level})
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        session = self.session
        try:
            if exc is None:
                if self._aborted:
                    await self._safe_rollback(session)
                    logger.info("uow.rolled_back", extra={"unit": self.name, "duration_ms": self._elapsed_ms()})
                    return False
                try:
                    await session.commit()
                except Exception as commit_exc:
                    await self._safe_rollback(session)
                    raise translate_db_error(commit_exc, self.model_name) from commit_exc
                logger.info("uow.commit", extra={"unit": self.name, "duration_ms": self._elapsed_ms()})
                return False

            await self._safe_rollback(session)
            logger.info(
                "uow.rolled_back",
                extra={"unit": self.name, "duration_ms": self._elapsed_ms(), "error_type": exc_type.__name__},
            )
            if isinstance(exc, RepositoryError) or not isinstance(exc, Exception):
                return False
            error = translate_db_error(exc, self.model_name)
            raise error from exc
        finally:
            await self.provider.release(session)
            self._session = None
            reset_operation_id(self._token)

    async def _safe_rollback(self, session: AsyncSession) -> None:
        try:
            await session.rollback()
        except Exception:
            logger.error("uow.rollback_failed", exc_info=True, extra={"unit": self.name})

    def _elapsed_ms(self) -> float:
        return round((time.perf_counter() - self._started) * 1000, 2)
