import pytest
from sqlalchemy import exc as sa_exc

from bookcatalog.exceptions.base import (
    ConnectivityError,
    DuplicateError,
    MissingFieldError,
    PersistenceError,
    ReferentialIntegrityError,
    RepositoryError,
    ValidationError,
)
from bookcatalog.exceptions.classifier import ConstraintKind, classify_integrity_error, is_connectivity_error
from bookcatalog.exceptions.mapper import (
    db_error_handler,
    extract_columns_from_integrity,
    map_integrity_error,
    translate_db_error,
)


class FakePgError(Exception):
    """Driver error carrying a SQLSTATE the way psycopg does."""

    def __init__(self, message, pgcode):
        super().__init__(message)
        self.pgcode = pgcode


def integrity(message, orig=None) -> sa_exc.IntegrityError:
    return sa_exc.IntegrityError("INSERT ...", {}, orig if orig is not None else Exception(message))


class TestClassifier:

    @pytest.mark.parametrize(
        "message, kind",
        [
            ("UNIQUE constraint failed: titles.isbn", ConstraintKind.UNIQUE),
            ("NOT NULL constraint failed: authors.first_name", ConstraintKind.NOT_NULL),
            ("FOREIGN KEY constraint failed", ConstraintKind.FOREIGN_KEY),
            ("Duplicate entry '1-x' for key 'author_titles.PRIMARY'", ConstraintKind.UNIQUE),
        ],
    )
    def test_message_fallback(self, message, kind):
        assert classify_integrity_error(integrity(message))[0] is kind

    def test_sqlstate_takes_precedence(self):
        orig = FakePgError("something vague", "23503")
        kind, _ = classify_integrity_error(integrity("", orig))
        assert kind is ConstraintKind.FOREIGN_KEY

    def test_connectivity_detection(self):
        refused = sa_exc.OperationalError("connect", {}, Exception("unable to open database file"))
        syntax = sa_exc.OperationalError("SELECT", {}, Exception("near \"SELEC\": syntax error"))

        assert is_connectivity_error(refused)
        assert is_connectivity_error(ConnectionRefusedError())
        assert not is_connectivity_error(syntax)
        assert not is_connectivity_error(integrity("UNIQUE constraint failed: titles.isbn"))


class TestMapper:

    def test_columns_from_sqlite_message(self):
        err = integrity("UNIQUE constraint failed: author_titles.author_id, author_titles.isbn")
        assert extract_columns_from_integrity(err) == ["author_id", "isbn"]

    def test_columns_from_postgres_message(self):
        err = integrity('duplicate key value violates unique constraint "pk_titles"\nDETAIL:  Key (isbn)=(1) exists.')
        assert extract_columns_from_integrity(err) == ["isbn"]

    @pytest.mark.parametrize(
        "message, expected",
        [
            ("UNIQUE constraint failed: titles.isbn", DuplicateError),
            ("FOREIGN KEY constraint failed", ReferentialIntegrityError),
            ("NOT NULL constraint failed: titles.name", MissingFieldError),
        ],
    )
    def test_integrity_mapping(self, message, expected):
        error = map_integrity_error(integrity(message), "Title")
        assert type(error) is expected
        assert isinstance(error, PersistenceError)
        assert "Title" in error.message

    def test_translate_connectivity(self):
        raw = sa_exc.OperationalError("connect", {}, Exception("connection refused"))
        error = translate_db_error(raw, "Title")

        assert isinstance(error, ConnectivityError)
        assert error.error_code == "connectivity"
        assert error.__cause__ is raw

    def test_translate_other_sqlalchemy_error(self):
        error = translate_db_error(sa_exc.ProgrammingError("SELECT", {}, Exception("no such table")))
        assert type(error) is PersistenceError

    def test_translate_passes_catalog_errors_through(self):
        original = ValidationError("bad input", fields=["isbn"])
        assert translate_db_error(original) is original

    def test_payload_shape(self):
        error = DuplicateError("Title already exists", fields=["isbn"], constraint="pk_titles")

        assert error.to_payload() == {"detail": "Title already exists", "code": "duplicate", "fields": ["isbn"]}
        assert "pk_titles" in str(error)
        assert isinstance(error, RepositoryError)


@pytest.mark.asyncio
class TestDbErrorHandler:

    async def test_raw_error_translated(self):
        with pytest.raises(DuplicateError):
            async with db_error_handler(model_name="Title"):
                raise integrity("UNIQUE constraint failed: titles.isbn")

    async def test_catalog_error_reraised_unchanged(self):
        original = ConnectivityError("down")

        with pytest.raises(ConnectivityError) as excinfo:
            async with db_error_handler(model_name="Title"):
                raise original

        assert excinfo.value is original
        assert excinfo.value.__cause__ is None

    async def test_session_rolled_back(self):
        class FakeSession:
            rolled_back = False

            async def rollback(self):
                self.rolled_back = True

        session = FakeSession()
        with pytest.raises(PersistenceError):
            async with db_error_handler(session, "Author"):
                raise sa_exc.ProgrammingError("SELECT", {}, Exception("boom"))

        assert session.rolled_back
