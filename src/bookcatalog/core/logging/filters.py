# src/bookcatalog/core/logging/filters.py
"""
Operation id filter and helpers for logging.

Every unit of work (and every read) runs under a short operation id kept in a
`contextvars.ContextVar`. `OperationIdFilter` copies it onto each LogRecord, so
all the lines emitted while one atomic write runs (insert title, batch insert
associations, commit or rollback) can be pulled out of the logs together.

A ContextVar rather than `threading.local()` because repository calls are
coroutines: many of them interleave on one thread, and the id must follow the
coroutine across `await` points.

When no operation is active the record gets the sentinel "-" so formatters
referencing `%(operation_id)s` never raise KeyError.
"""

import logging
import uuid
import contextvars
from logging import LogRecord

_operation_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation_id", default=None
)


def new_operation_id() -> str:
    """Short random id; long enough to be unique within a log window."""
    return uuid.uuid4().hex[:12]


def set_operation_id(operation_id: str | None) -> contextvars.Token:
    """
    Set the operation id in the current context and return the token to allow reset.
    """
    return _operation_id_ctx.set(operation_id)


def reset_operation_id(token: contextvars.Token) -> None:
    """Restore the value saved by set_operation_id()."""
    _operation_id_ctx.reset(token)


def get_operation_id() -> str | None:
    return _operation_id_ctx.get()


class OperationIdFilter(logging.Filter):
    """
    Guarantees every LogRecord has an `operation_id` attribute.

    Precedence:
      - record.operation_id if the call site passed it via `extra`
      - the context variable set by the running unit of work
      - the sentinel "-"

    Always returns True; the filter annotates, it never drops.
    """

    def filter(self, record: LogRecord) -> bool:
        record.operation_id = (
            getattr(record, "operation_id", None) or get_operation_id() or "-"
        )
        return True
