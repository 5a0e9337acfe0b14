"""
Classification of raw SQLAlchemy / DBAPI errors.

Two questions are answered here, and nothing is raised:

  - which constraint did an `IntegrityError` violate? (`classify_integrity_error`)
  - is this error a lost / unobtainable connection rather than a rejected
    statement? (`is_connectivity_error`)

The mapper turns the answers into app-level exceptions.
"""
import logging
from enum import Enum

from sqlalchemy import exc as sa_exc

logger = logging.getLogger(__name__)


class ConstraintKind(str, Enum):
    UNIQUE = "unique"
    NOT_NULL = "not_null"
    FOREIGN_KEY = "foreign_key"
    CHECK = "check"
    UNKNOWN = "unknown"


# =================================================================================================================
# Postgres SQLSTATE mapping
# =================================================================================================================

# https://www.postgresql.org/docs/current/errcodes-appendix.html
class PostgresErrorCodes(str, Enum):
    UNIQUE_VIOLATION = "23505"
    NOT_NULL_VIOLATION = "23502"
    FOREIGN_KEY_VIOLATION = "23503"
    CHECK_VIOLATION = "23514"


SQLSTATE_KIND_MAP = {
    PostgresErrorCodes.UNIQUE_VIOLATION.value: ConstraintKind.UNIQUE,
    PostgresErrorCodes.NOT_NULL_VIOLATION.value: ConstraintKind.NOT_NULL,
    PostgresErrorCodes.FOREIGN_KEY_VIOLATION.value: ConstraintKind.FOREIGN_KEY,
    PostgresErrorCodes.CHECK_VIOLATION.value: ConstraintKind.CHECK,
}

# Keyword heuristics for engines without SQLSTATE diagnostics (SQLite, MySQL).
_MESSAGE_KEYWORDS: list[tuple[ConstraintKind, tuple[str, ...]]] = [
    (ConstraintKind.UNIQUE, ("unique constraint", "unique failed", "unique violation", "duplicate")),
    (ConstraintKind.NOT_NULL, ("not null constraint", "not null", "null value in column", "cannot be null")),
    (ConstraintKind.FOREIGN_KEY, ("foreign key constraint", "foreign key", "is not present in table")),
    (ConstraintKind.CHECK, ("check constraint", "check failed")),
]

_CONNECTIVITY_KEYWORDS = (
    "could not connect",
    "connection refused",
    "connection reset",
    "server closed the connection",
    "connection is closed",
    "connection was closed",
    "unable to open database",
    "can't connect",
    "lost connection",
    "name or service not known",
    "timeout expired",
)


def _sqlstate_of(orig) -> str | None:
    # psycopg exposes `pgcode`; the asyncpg adapter mirrors `sqlstate` (and recent
    # SQLAlchemy releases also copy it onto `pgcode`).
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def _constraint_name_of(orig) -> str | None:
    diag = getattr(orig, "diag", None)
    if diag is not None and getattr(diag, "constraint_name", None):
        return diag.constraint_name
    # asyncpg keeps the driver exception as the cause of the adapted one
    cause = getattr(orig, "__cause__", None)
    return getattr(cause, "constraint_name", None)


def _classify_from_message(msg: str) -> ConstraintKind:
    normalized = (msg or "").lower()
    for kind, keywords in _MESSAGE_KEYWORDS:
        if any(keyword in normalized for keyword in keywords):
            return kind

    logger.warning("classifier.unknown_integrity_message", extra={"message_snippet": normalized[:200]})
    return ConstraintKind.UNKNOWN


def classify_integrity_error(exc: sa_exc.IntegrityError) -> tuple[ConstraintKind, str | None]:
    """
    Work out which constraint an IntegrityError violated.

    Returns:
        (ConstraintKind, constraint name if the driver reported one)
    """
    orig = exc.orig
    sqlstate = _sqlstate_of(orig)
    constraint_name = _constraint_name_of(orig)

    if sqlstate:
        kind = SQLSTATE_KIND_MAP.get(str(sqlstate))
        if kind is not None:
            logger.debug("classifier.sqlstate", extra={"sqlstate": sqlstate, "constraint_name": constraint_name})
            return kind, constraint_name
        logger.warning(
            "classifier.unknown_sqlstate",
            extra={"sqlstate": sqlstate, "constraint_name": constraint_name},
        )

    return _classify_from_message(str(orig) if orig is not None else str(exc)), constraint_name


def is_connectivity_error(exc: BaseException) -> bool:
    """
    True when `exc` means "no usable connection" rather than "statement rejected".

    Covers invalidated connections, driver interface errors, pool checkout
    timeouts, OS-level socket/file errors and the usual connect-failure messages
    that drivers wrap in OperationalError.
    """
    if isinstance(exc, (sa_exc.DisconnectionError, sa_exc.TimeoutError, sa_exc.InterfaceError)):
        return True
    if isinstance(exc, (ConnectionError, OSError)):
        return True
    if isinstance(exc, sa_exc.DBAPIError):
        if exc.connection_invalidated:
            return True
        if isinstance(exc.orig, (ConnectionError, OSError)):
            return True
        if isinstance(exc, sa_exc.OperationalError):
            msg = str(exc.orig if exc.orig is not None else exc).lower()
            return any(keyword in msg for keyword in _CONNECTIVITY_KEYWORDS)
    return False
