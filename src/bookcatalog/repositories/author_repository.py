"""
Author store.

Single-table CRUD. Each write is one statement, still run through a unit of
work so commit/rollback and error translation behave like the title store.
"""
import logging

from sqlalchemy import delete, select, update

from bookcatalog.database.provider import ConnectionProvider
from bookcatalog.database.unit_of_work import UnitOfWork
from bookcatalog.models import Author, AuthorTitle, Title
from bookcatalog.results import StoreResult
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AuthorRepository(BaseRepository[Author]):

    def __init__(self, provider: ConnectionProvider, *, isolation_level: str | None = None):
        super().__init__(Author, provider, isolation_level=isolation_level)

    # -----------------------
    # Reads
    # -----------------------

    async def list_all(self) -> list[Author]:
        """All authors ordered by id; empty list when there are none."""
        return await super().list_all(Author.id)

    async def get_by_id(self, author_id: int) -> Author | None:
        return await self.get_by_pk(author_id)

    async def list_titles_for(self, author_id: int) -> list[Title]:
        """
        Titles linked to `author_id`, ordered by isbn.

        Ids <= 0 can never match a row and return [] without a query.
        """
        if author_id <= 0:
            logger.debug("author.list_titles.invalid_id", extra={"author_id": author_id})
            return []

        stmt = (
            select(Title)
            .join(AuthorTitle, AuthorTitle.isbn == Title.isbn)
            .where(AuthorTitle.author_id == author_id)
            .order_by(Title.isbn)
        )
        async with self._reading("list_titles") as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    # -----------------------
    # Writes
    # -----------------------

    async def insert(self, first_name: str, last_name: str) -> StoreResult[Author]:
        """Insert an author; the result's value carries the database-assigned id."""

        async def work(uow: UnitOfWork) -> StoreResult[Author]:
            author = Author(first_name=first_name, last_name=last_name)
            uow.session.add(author)
            await uow.session.flush()
            await uow.session.refresh(author)
            logger.info("author.insert.success", extra={"author_id": author.id})
            return StoreResult.success(author)

        return await self._write("insert", work)

    async def update(self, author_id: int, first_name: str, last_name: str) -> StoreResult[Author]:
        """Overwrite both names. No matching row -> NOT_FOUND."""

        async def work(uow: UnitOfWork) -> StoreResult[Author]:
            result = await uow.session.execute(
                update(Author)
                .where(Author.id == author_id)
                .values(first_name=first_name, last_name=last_name)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                logger.info("author.update.not_found", extra={"author_id": author_id})
                return StoreResult.not_found(f"Author {author_id} not found")
            author = await uow.session.get(Author, author_id, populate_existing=True)
            return StoreResult.success(author)

        return await self._write("update", work)

    async def delete(self, author_id: int) -> StoreResult[None]:
        """
        Delete one author.

        Links in author_titles are ON DELETE RESTRICT: an author still listed
        on a title is rejected with a ReferentialIntegrityError result.
        """

        async def work(uow: UnitOfWork) -> StoreResult[None]:
            result = await uow.session.execute(delete(Author).where(Author.id == author_id))
            if result.rowcount == 0:
                logger.info("author.delete.not_found", extra={"author_id": author_id})
                return StoreResult.not_found(f"Author {author_id} not found")
            return StoreResult.success()

        return await self._write("delete", work)
