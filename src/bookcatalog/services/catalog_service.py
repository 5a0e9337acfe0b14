"""
Catalog service: input validation in front of the author and title stores.

Bad input raises `bookcatalog.exceptions.ValidationError` before any storage
call. Everything else is the stores' contract passed through: writes return a
`StoreResult`, reads return values / None / lists.
"""
import logging
from typing import Any, Sequence, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from bookcatalog.exceptions.base import ValidationError
from bookcatalog.models import Author, Title
from bookcatalog.repositories.author_repository import AuthorRepository
from bookcatalog.repositories.title_repository import TitleRepository
from bookcatalog.results import StoreResult
from bookcatalog.schemas.catalog import AuthorInput, TitleInput
from bookcatalog.validators.input_validators import require_non_blank

logger = logging.getLogger(__name__)

SchemaType = TypeVar("SchemaType", bound=BaseModel)


def _validate(schema: Type[SchemaType], **data: Any) -> SchemaType:
    try:
        return schema(**data)
    except PydanticValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        logger.info("service.invalid_input", extra={"schema": schema.__name__, "fields": fields})
        raise ValidationError(f"Invalid {schema.__name__}", fields=fields) from exc


# authors.id is a 32-bit INTEGER column
_ID_MIN, _ID_MAX = -(2 ** 31), 2 ** 31 - 1


def _validate_id(author_id: Any) -> int:
    """Accept ints and numeric strings ("7") within the column's range; anything else is bad input."""
    value = None
    if isinstance(author_id, int) and not isinstance(author_id, bool):
        value = author_id
    elif isinstance(author_id, str):
        try:
            value = int(author_id.strip())
        except ValueError:
            pass
    if value is None:
        raise ValidationError("Author id must be numeric", fields=["author_id"])
    if not _ID_MIN <= value <= _ID_MAX:
        raise ValidationError("Author id is out of range", fields=["author_id"])
    return value


def _validate_isbn(isbn: Any) -> str:
    try:
        return require_non_blank(isbn, "isbn")
    except ValueError as exc:
        raise ValidationError(str(exc), fields=["isbn"]) from None


class CatalogService:

    def __init__(self, authors: AuthorRepository, titles: TitleRepository):
        self.authors = authors
        self.titles = titles

    # =================================================================================================================
    # Authors
    # =================================================================================================================

    async def list_authors(self) -> list[Author]:
        return await self.authors.list_all()

    async def get_author(self, author_id: int) -> Author | None:
        author_id = _validate_id(author_id)
        return await self.authors.get_by_id(author_id)

    async def add_author(self, first_name: str, last_name: str) -> StoreResult[Author]:
        data = _validate(AuthorInput, first_name=first_name, last_name=last_name)
        return await self.authors.insert(data.first_name, data.last_name)

    async def update_author(self, author_id: int, first_name: str, last_name: str) -> StoreResult[Author]:
        """Read-modify-write: unknown id -> NOT_FOUND without a unit of work."""
        author_id = _validate_id(author_id)
        data = _validate(AuthorInput, first_name=first_name, last_name=last_name)

        existing = await self.authors.get_by_id(author_id)
        if existing is None:
            logger.info("service.author.update.not_found", extra={"author_id": author_id})
            return StoreResult.not_found(f"Author {author_id} not found")

        existing.first_name = data.first_name
        existing.last_name = data.last_name
        return await self.authors.update(existing.id, existing.first_name, existing.last_name)

    async def delete_author(self, author_id: int) -> StoreResult[None]:
        author_id = _validate_id(author_id)
        if await self.authors.get_by_id(author_id) is None:
            logger.info("service.author.delete.not_found", extra={"author_id": author_id})
            return StoreResult.not_found(f"Author {author_id} not found")
        return await self.authors.delete(author_id)

    async def titles_by_author(self, author_id: int) -> list[Title]:
        author_id = _validate_id(author_id)
        return await self.authors.list_titles_for(author_id)

    # =================================================================================================================
    # Titles
    # =================================================================================================================

    async def list_titles(self) -> list[Title]:
        return await self.titles.list_all()

    async def get_title(self, isbn: str) -> Title | None:
        isbn = _validate_isbn(isbn)
        return await self.titles.get_by_isbn(isbn)

    async def add_title(self, isbn: str, name: str, edition_number: int, copyright_year: str,
                        author_ids: Sequence[int]) -> StoreResult[Title]:
        data = _validate(
            TitleInput,
            isbn=isbn,
            name=name,
            edition_number=edition_number,
            copyright_year=copyright_year,
            author_ids=author_ids,
        )
        title = Title(
            isbn=data.isbn,
            name=data.name,
            edition_number=data.edition_number,
            copyright_year=data.copyright_year,
        )
        return await self.titles.create(title, data.author_ids)

    async def update_title(self, isbn: str, name: str, edition_number: int, copyright_year: str,
                           author_ids: Sequence[int]) -> StoreResult[Title]:
        """
        Read-modify-write: fetch the title, apply the new fields, then replace
        it and its whole author set in one unit of work.
        """
        data = _validate(
            TitleInput,
            isbn=isbn,
            name=name,
            edition_number=edition_number,
            copyright_year=copyright_year,
            author_ids=author_ids,
        )
        existing = await self.titles.get_by_isbn(data.isbn)
        if existing is None:
            logger.info("service.title.update.not_found", extra={"isbn": data.isbn})
            return StoreResult.not_found(f"Title {data.isbn} not found")

        existing.name = data.name
        existing.edition_number = data.edition_number
        existing.copyright_year = data.copyright_year
        return await self.titles.update(existing, data.author_ids)

    async def delete_title(self, isbn: str) -> StoreResult[None]:
        isbn = _validate_isbn(isbn)
        if await self.titles.get_by_isbn(isbn) is None:
            logger.info("service.title.delete.not_found", extra={"isbn": isbn})
            return StoreResult.not_found(f"Title {isbn} not found")
        return await self.titles.delete(isbn)

    async def authors_for_title(self, isbn: str) -> list[Author]:
        isbn = _validate_isbn(isbn)
        return await self.titles.list_authors_for(isbn)
