import asyncio
import logging

import pytest
from sqlalchemy import insert, select, text

from bookcatalog.core.logging.filters import get_operation_id
from bookcatalog.exceptions.base import DuplicateError, PersistenceError, ValidationError
from bookcatalog.models import Title

_titles = Title.__table__


def _row(isbn="1"):
    return {"isbn": isbn, "name": "n", "edition_number": 1, "copyright_year": "2000"}


async def _isbns(provider) -> list[str]:
    async with provider.session() as session:
        return list((await session.execute(select(Title.isbn).order_by(Title.isbn))).scalars())


@pytest.mark.asyncio
class TestUnitOfWork:

    async def test_commit_on_clean_exit(self, provider):
        async with provider.unit_of_work("test.commit") as uow:
            await uow.session.execute(insert(_titles).values(**_row()))

        assert await _isbns(provider) == ["1"]

    async def test_explicit_rollback_discards_work(self, provider):
        async with provider.unit_of_work("test.abort") as uow:
            await uow.session.execute(insert(_titles).values(**_row()))
            uow.rollback()
            assert uow.aborted

        assert await _isbns(provider) == []

    async def test_engine_error_is_translated(self, provider):
        """
        Behavior:
            - A raw IntegrityError inside the block comes out as DuplicateError,
              chained to the original, and the unit's writes are gone.
        """
        with pytest.raises(DuplicateError) as excinfo:
            async with provider.unit_of_work("test.dup", model_name="Title") as uow:
                await uow.session.execute(insert(_titles).values(**_row("a")))
                await uow.session.execute(insert(_titles).values(**_row("a")))

        assert excinfo.value.__cause__ is not None
        assert await _isbns(provider) == []

    async def test_catalog_errors_pass_through_unchanged(self, provider):
        error = ValidationError("bad")

        with pytest.raises(ValidationError) as excinfo:
            async with provider.unit_of_work("test.passthrough") as uow:
                await uow.session.execute(insert(_titles).values(**_row()))
                raise error

        assert excinfo.value is error
        assert await _isbns(provider) == []

    async def test_unexpected_exception_becomes_persistence_error(self, provider):
        with pytest.raises(PersistenceError):
            async with provider.unit_of_work("test.bug"):
                raise KeyError("oops")

    async def test_cancellation_propagates_as_is(self, provider):
        with pytest.raises(asyncio.CancelledError):
            async with provider.unit_of_work("test.cancel") as uow:
                await uow.session.execute(insert(_titles).values(**_row()))
                raise asyncio.CancelledError()

        assert await _isbns(provider) == []

    async def test_operation_id_scoped_to_unit(self, provider):
        assert get_operation_id() is None

        async with provider.unit_of_work("test.opid") as uow:
            assert get_operation_id() == uow.operation_id
            assert len(uow.operation_id) == 12

        assert get_operation_id() is None

    async def test_session_unavailable_outside_block(self, provider):
        uow = provider.unit_of_work("test.outside")

        with pytest.raises(RuntimeError):
            uow.session

    async def test_rollback_failure_logged_original_error_kept(self, provider, monkeypatch, caplog):
        """A failing rollback is logged; the caller still sees the original failure."""
        from sqlalchemy.ext.asyncio import AsyncSession

        async def broken_rollback(self):
            raise RuntimeError("rollback exploded")

        caplog.set_level(logging.ERROR, logger="bookcatalog.database.unit_of_work")

        with pytest.raises(PersistenceError):
            async with provider.unit_of_work("test.broken_rollback") as uow:
                monkeypatch.setattr(AsyncSession, "rollback", broken_rollback)
                raise KeyError("first failure")

        monkeypatch.undo()
        assert any(r.getMessage() == "uow.rollback_failed" for r in caplog.records)

    async def test_commit_logs_duration(self, provider, caplog):
        caplog.set_level(logging.INFO, logger="bookcatalog.database.unit_of_work")

        async with provider.unit_of_work("test.timed"):
            pass

        commits = [r for r in caplog.records if r.getMessage() == "uow.commit"]
        assert commits and commits[0].unit == "test.timed"
        assert commits[0].duration_ms >= 0


@pytest.mark.asyncio
class TestIsolationLevel:

    async def test_per_unit_isolation_level(self, provider):
        """
        Behavior:
            - A unit may ask for its own isolation level; the pooled connection
              goes back to the engine default once released.
        """
        if provider.backend != "sqlite":
            pytest.skip("isolation probe below is SQLite specific")

        async with provider.unit_of_work("test.iso", isolation_level="READ UNCOMMITTED") as uow:
            assert (await uow.session.execute(text("PRAGMA read_uncommitted"))).scalar_one() == 1

        async with provider.session() as session:
            assert (await session.execute(text("PRAGMA read_uncommitted"))).scalar_one() == 0
