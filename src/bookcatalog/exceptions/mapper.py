"""
Map SQLAlchemy / DBAPI errors onto the catalog's exception taxonomy.

| Raw error                                   | Catalog error                 |
| ------------------------------------------- | ----------------------------- |
| IntegrityError, unique / PK violation       | DuplicateError                |
| IntegrityError, foreign key violation       | ReferentialIntegrityError     |
| IntegrityError, NOT NULL violation          | MissingFieldError             |
| IntegrityError, check / unknown             | PersistenceError              |
| connection refused / invalidated / timeout  | ConnectivityError             |
| any other SQLAlchemyError                   | PersistenceError              |

Catalog errors (already translated) pass through unchanged.
"""
import re
import logging
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .classifier import ConstraintKind, classify_integrity_error, is_connectivity_error
from .base import (
    RepositoryError,
    PersistenceError,
    DuplicateError,
    ReferentialIntegrityError,
    MissingFieldError,
    ConnectivityError,
)

logger = logging.getLogger(__name__)

# -----------------------
# Column extraction helpers
# -----------------------

_PG_NOT_NULL = re.compile(r'null value in column "(?P<col>[^"]+)"', re.IGNORECASE)
_PG_KEY = re.compile(r'key \((?P<cols>[^)]+)\)=', re.IGNORECASE)
_SQLITE_CONSTRAINT = re.compile(r'(?:UNIQUE|NOT NULL) constraint failed: (?P<cols>.+)$', re.IGNORECASE)
_MYSQL_NULL = re.compile(r"Column '(?P<col>[^']+)' cannot be null", re.IGNORECASE)
_MYSQL_DUPLICATE = re.compile(r"Duplicate entry .* for key '(?P<key>[^']+)'", re.IGNORECASE)


def extract_columns_from_integrity(exc: IntegrityError) -> list[str] | None:
    """
    Best-effort extraction of column names from the driver message.

    Handles the Postgres (`Key (isbn)=(...)`, `null value in column "name"`),
    SQLite (`UNIQUE constraint failed: titles.isbn`) and MySQL message shapes.
    SQLite foreign key failures carry no column names; None is returned then.
    """
    msg = str(exc.orig) if exc.orig is not None else str(exc)

    m = _PG_NOT_NULL.search(msg)
    if m:
        return [m.group("col")]

    m = _PG_KEY.search(msg)
    if m:
        return [c.strip().strip('"') for c in m.group("cols").split(",")]

    m = _SQLITE_CONSTRAINT.search(msg)
    if m:
        return [c.split(".")[-1].strip() for c in re.split(r",\s*", m.group("cols").strip())]

    m = _MYSQL_NULL.search(msg)
    if m:
        return [m.group("col")]

    m = _MYSQL_DUPLICATE.search(msg)
    if m:
        # MySQL reports the index name, e.g. 'titles.PRIMARY'
        return [m.group("key").split(".")[-1]]

    return None


# -----------------------
# Mapper
# -----------------------

def map_integrity_error(exc: IntegrityError, model_name: str | None = None) -> PersistenceError:
    """
    Build (not raise) the catalog exception matching an IntegrityError.
    Populates `.fields` and `.constraint` where the driver makes them available.
    """
    kind, constraint_name = classify_integrity_error(exc)
    columns = extract_columns_from_integrity(exc)
    model_part = model_name or "Record"
    field_part = f" for field(s): {', '.join(columns)}" if columns else ""

    # Expected, caller-induced outcomes are INFO; the raw DB text stays at DEBUG.
    logger.info(
        "mapper.integrity_violation",
        extra={"model": model_part, "kind": kind.value, "fields": columns, "constraint": constraint_name},
    )

    if kind is ConstraintKind.UNIQUE:
        return DuplicateError(f"{model_part} already exists{field_part}", fields=columns, constraint=constraint_name)

    if kind is ConstraintKind.FOREIGN_KEY:
        return ReferentialIntegrityError(
            f"{model_part} references a missing row or is still referenced{field_part}",
            fields=columns,
            constraint=constraint_name,
        )

    if kind is ConstraintKind.NOT_NULL:
        return MissingFieldError(f"Missing required field{field_part} for {model_part}", fields=columns,
                                 constraint=constraint_name)

    raw = str(exc.orig) if exc.orig is not None else str(exc)
    logger.debug("mapper.integrity_raw", extra={"model": model_part, "raw": raw})

    if kind is ConstraintKind.CHECK:
        return PersistenceError(f"{model_part} business rule violated (check constraint).", constraint=constraint_name)
    return PersistenceError(f"{model_part} database integrity error.", constraint=constraint_name)


def translate_db_error(exc: BaseException, model_name: str | None = None) -> RepositoryError:
    """
    Translate any exception raised while talking to storage into a catalog error.

    Already-translated `RepositoryError`s are returned as they are.
    """
    if isinstance(exc, RepositoryError):
        return exc

    target = model_name or "database"

    if isinstance(exc, IntegrityError):
        error = map_integrity_error(exc, model_name)
    elif is_connectivity_error(exc):
        logger.error("mapper.connectivity_failure", extra={"model": target, "error_type": type(exc).__name__})
        error = ConnectivityError(f"Storage unavailable while operating on {target}")
    elif isinstance(exc, SQLAlchemyError):
        logger.error("mapper.persistence_failure", extra={"model": target, "error_type": type(exc).__name__})
        error = PersistenceError(f"Failed to operate on {target}")
    else:
        # Non-database exceptions (bugs) are still reported with a stack trace.
        logger.error("mapper.unexpected_error", exc_info=exc, extra={"model": target})
        error = PersistenceError(f"Unexpected failure while operating on {target}")

    error.__cause__ = exc
    return error


# -----------------------
# Async context manager to DRY read-side error handling in repositories
# -----------------------
@asynccontextmanager
async def db_error_handler(db: AsyncSession | None = None, model_name: str | None = None):
    """
    Usage:
        async with db_error_handler(session, "Title"):
            ... DB reads that may fail ...

    Rolls the session back on error (if one is given) and raises the translated
    catalog exception in place of the raw one.
    """
    try:
        yield
    except Exception as exc:
        if db is not None:
            try:
                await db.rollback()
            except Exception:
                logger.exception("mapper.rollback_failed", extra={"model": model_name})
        if isinstance(exc, RepositoryError):
            raise
        raise translate_db_error(exc, model_name) from exc
