"""
Title store: titles together with their author links, written as one unit.

Every write runs in a single UnitOfWork and uses Core statements on the
mapped tables so each step reports its own rowcount:

    create   insert title -> batch insert links               -> commit
    update   update title -> delete all links -> batch insert -> commit
    delete   delete links -> delete title                     -> commit

A step reporting fewer rows than expected aborts the unit (rollback, failed
result). Engine errors roll back and come back as a failed StoreResult.
"""
import logging
from typing import Sequence

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bookcatalog.database.provider import ConnectionProvider
from bookcatalog.database.unit_of_work import UnitOfWork
from bookcatalog.exceptions.base import PersistenceError
from bookcatalog.models import Author, AuthorTitle, Title
from bookcatalog.results import StoreResult
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_titles = Title.__table__
_links = AuthorTitle.__table__


class TitleRepository(BaseRepository[Title]):

    def __init__(self, provider: ConnectionProvider, *, isolation_level: str | None = None):
        super().__init__(Title, provider, isolation_level=isolation_level)

    # =================================================================================================================
    # Reads
    # =================================================================================================================

    async def get_by_isbn(self, isbn: str) -> Title | None:
        return await self.get_by_pk(isbn)

    async def list_all(self) -> list[Title]:
        return await super().list_all(Title.isbn)

    async def list_authors_for(self, isbn: str) -> list[Author]:
        """Authors linked to `isbn`, ordered by id. Unknown isbn -> []."""
        stmt = (
            select(Author)
            .join(AuthorTitle, AuthorTitle.author_id == Author.id)
            .where(AuthorTitle.isbn == isbn)
            .order_by(Author.id)
        )
        async with self._reading("list_authors") as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    # =================================================================================================================
    # Writes
    # =================================================================================================================

    async def create(self, title: Title, author_ids: Sequence[int]) -> StoreResult[Title]:
        """
        Insert `title` and one link per id in `author_ids`, atomically.

        Ids are not deduplicated: a repeated id violates the link primary key
        and the whole unit is rolled back. A duplicate isbn fails the same way.
        """

        async def work(uow: UnitOfWork) -> StoreResult[Title]:
            result = await uow.session.execute(insert(_titles).values(**_title_values(title)))
            if result.rowcount == 0:
                logger.info("title.create.no_row", extra={"isbn": title.isbn})
                return StoreResult.failure(PersistenceError(f"Title {title.isbn} was not inserted"))
            if not await self._insert_links(uow.session, title.isbn, author_ids):
                return StoreResult.failure(PersistenceError(f"Author links for {title.isbn} were not all inserted"))
            logger.info("title.create.success", extra={"isbn": title.isbn, "authors": len(author_ids)})
            return StoreResult.success(_detached_copy(title))

        return await self._write("create", work)

    async def update(self, title: Title, new_author_ids: Sequence[int]) -> StoreResult[Title]:
        """
        Overwrite the title's mutable fields and replace its whole author set.

        The existing links are wiped and `new_author_ids` inserted; no diffing.
        Unknown isbn -> NOT_FOUND, nothing touched.
        """

        async def work(uow: UnitOfWork) -> StoreResult[Title]:
            values = _title_values(title)
            values.pop("isbn")
            result = await uow.session.execute(
                update(_titles).where(_titles.c.isbn == title.isbn).values(**values)
            )
            if result.rowcount == 0:
                logger.info("title.update.not_found", extra={"isbn": title.isbn})
                return StoreResult.not_found(f"Title {title.isbn} not found")

            wiped = await uow.session.execute(delete(_links).where(_links.c.isbn == title.isbn))
            logger.debug("title.update.links_wiped", extra={"isbn": title.isbn, "rows": wiped.rowcount})

            if not await self._insert_links(uow.session, title.isbn, new_author_ids):
                return StoreResult.failure(PersistenceError(f"Author links for {title.isbn} were not all inserted"))
            logger.info("title.update.success", extra={"isbn": title.isbn, "authors": len(new_author_ids)})
            return StoreResult.success(_detached_copy(title))

        return await self._write("update", work)

    async def delete(self, isbn: str) -> StoreResult[None]:
        """
        Remove the title's links, then the title.

        Success needs the title row itself to go; a title without links is fine.
        """

        async def work(uow: UnitOfWork) -> StoreResult[None]:
            links = await uow.session.execute(delete(_links).where(_links.c.isbn == isbn))
            result = await uow.session.execute(delete(_titles).where(_titles.c.isbn == isbn))
            if result.rowcount == 0:
                logger.info("title.delete.not_found", extra={"isbn": isbn})
                return StoreResult.not_found(f"Title {isbn} not found")
            logger.info("title.delete.success", extra={"isbn": isbn, "links_removed": links.rowcount})
            return StoreResult.success()

        return await self._write("delete", work)

    # -----------------------
    # Helpers
    # -----------------------

    async def _insert_links(self, session: AsyncSession, isbn: str, author_ids: Sequence[int]) -> bool:
        """
        Batch insert (executemany) of one link row per author id.

        Returns False when the driver reports fewer rows than requested.
        Engine errors (unknown author, repeated id) propagate to the unit of work.
        """
        if not author_ids:
            logger.warning("title.links.empty_batch", extra={"isbn": isbn})
            return True

        rows = [{"author_id": author_id, "isbn": isbn} for author_id in author_ids]
        result = await session.execute(insert(_links), rows)

        # Some drivers cannot count executemany rows; trust the absence of an error there.
        if session.get_bind().dialect.supports_sane_multi_rowcount and result.rowcount not in (-1, len(rows)):
            logger.info(
                "title.links.partial_batch",
                extra={"isbn": isbn, "requested": len(rows), "inserted": result.rowcount},
            )
            return False
        return True


def _title_values(title: Title) -> dict:
    return {
        "isbn": title.isbn,
        "name": title.name,
        "edition_number": title.edition_number,
        "copyright_year": title.copyright_year,
    }


def _detached_copy(title: Title) -> Title:
    return Title(**_title_values(title))
