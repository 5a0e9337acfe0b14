"""
Catalog-level exceptions.

Everything a repository or the catalog service lets escape is one of these.
Raw SQLAlchemy / DBAPI exceptions are translated in `exceptions.mapper` and
never cross the repository boundary.
"""

from typing import Iterable


class RepositoryError(Exception):
    """
    Base exception for repository/service errors.

    - message: human-friendly message (safe to show to callers)
    - fields: optional list of field names related to the error (e.g. ['isbn'])
    - constraint: optional DB constraint name (for logs only)
    - error_code: canonical short code (e.g. 'duplicate', 'connectivity')
    """

    default_code: str | None = None

    def __init__(self, message: str, *, fields: Iterable[str] | None = None,
                 constraint: str | None = None, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        self.fields = list(fields) if fields else None
        self.constraint = constraint
        self.error_code = error_code or self.default_code

    def __str__(self) -> str:
        base = self.message
        parts = []
        if self.fields:
            parts.append(f"fields: {', '.join(self.fields)}")
        if self.constraint:
            parts.append(f"constraint: {self.constraint}")
        if self.error_code:
            parts.append(f"code: {self.error_code}")
        if parts:
            return f"{base} ({'; '.join(parts)})"
        return base

    def to_payload(self) -> dict:
        """
        Return a JSON-serializable dict describing the error.

        Shape:
            {"detail": "...", "code": "duplicate", "fields": ["isbn"]}

        The constraint name stays out of the payload; it is a storage detail.
        """
        payload = {"detail": self.message}
        if self.error_code:
            payload["code"] = self.error_code
        if self.fields:
            payload["fields"] = list(self.fields)
        return payload


class ValidationError(RepositoryError):
    """Caller input is malformed; raised by the service before any storage call."""

    default_code = "invalid_input"


class PersistenceError(RepositoryError):
    """The storage engine rejected the operation (constraint, key or other DB failure)."""

    default_code = "persistence"


class DuplicateError(PersistenceError):
    """A unique or primary key constraint was violated."""

    default_code = "duplicate"


class ReferentialIntegrityError(PersistenceError):
    """A foreign key was violated: a referenced row is missing, or a referencing row still exists."""

    default_code = "reference"


class MissingFieldError(PersistenceError):
    """A NOT NULL column received no value."""

    default_code = "missing_field"


class ConnectivityError(RepositoryError):
    """The connection provider could not supply (or lost) a usable connection."""

    default_code = "connectivity"


__all__ = [
    "RepositoryError",
    "ValidationError",
    "PersistenceError",
    "DuplicateError",
    "ReferentialIntegrityError",
    "MissingFieldError",
    "ConnectivityError",
]
