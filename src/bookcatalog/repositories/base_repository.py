"""
Base repository shared by the Author and Title stores.

Reads run on a plain session from the provider and raise catalog exceptions
(PersistenceError / ConnectivityError) on failure. Writes run inside a
`UnitOfWork` and never raise storage errors; they return a `StoreResult`
tagged with what happened.
"""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Generic, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookcatalog.core.logging.filters import new_operation_id, reset_operation_id, set_operation_id
from bookcatalog.database.base import Base
from bookcatalog.database.provider import ConnectionProvider
from bookcatalog.database.unit_of_work import UnitOfWork
from bookcatalog.exceptions.base import RepositoryError
from bookcatalog.exceptions.mapper import db_error_handler
from bookcatalog.results import StoreResult

ModelType = TypeVar("ModelType", bound=Base)
T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelType]):
    """
    Generic base repository.

    Type Parameters:
        ModelType: The SQLAlchemy model class this repository manages.
    """

    def __init__(self, model: Type[ModelType], provider: ConnectionProvider, *,
                 isolation_level: str | None = None):
        """
        Args:
            model: the model class itself (e.g. Title, not Title()); used to build queries.
            provider: hands out sessions and units of work.
            isolation_level: per-transaction isolation for writes; None keeps the engine default.
        """
        self.model = model
        self.provider = provider
        self.isolation_level = isolation_level

    @property
    def model_name(self) -> str:
        return self.model.__name__

    # =================================================================================================================
    # Plumbing
    # =================================================================================================================

    @asynccontextmanager
    async def _reading(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Session for a read, under its own operation id, with errors translated."""
        token = set_operation_id(new_operation_id())
        try:
            logger.debug("repo.read.start", extra={"model": self.model_name, "operation": operation})
            async with db_error_handler(model_name=self.model_name):
                async with self.provider.session() as session:
                    yield session
        finally:
            reset_operation_id(token)

    async def _write(self, operation: str, work: Callable[[UnitOfWork], Awaitable[StoreResult[T]]]) -> StoreResult[T]:
        """
        Run `work` in a unit of work and turn every storage failure into a result.

        A non-successful result returned by `work` rolls the unit back.
        """
        start = time.perf_counter()
        try:
            async with self.provider.unit_of_work(
                f"{self.model_name.lower()}.{operation}",
                isolation_level=self.isolation_level,
                model_name=self.model_name,
            ) as uow:
                result = await work(uow)
                if not result:
                    uow.rollback()
        except RepositoryError as exc:
            logger.info(
                "repo.write.failed",
                extra={"model": self.model_name, "operation": operation, "error_code": exc.error_code},
            )
            return StoreResult.failure(exc)

        logger.info(
            "repo.write.done",
            extra={
                "model": self.model_name,
                "operation": operation,
                "outcome": result.outcome.value,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return result

    # =================================================================================================================
    # Shared reads
    # =================================================================================================================

    async def get_by_pk(self, pk: Any) -> ModelType | None:
        async with self._reading("get") as session:
            return await session.get(self.model, pk)

    async def list_all(self, *order_by) -> list[ModelType]:
        async with self._reading("list") as session:
            result = await session.execute(select(self.model).order_by(*order_by))
            return list(result.scalars().all())
