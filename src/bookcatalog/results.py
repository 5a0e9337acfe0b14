"""
Tagged outcome of a catalog write.

A bare boolean cannot tell "no such title" apart from "database unreachable";
`StoreResult` keeps the distinction while staying usable in a boolean context:

    result = await titles.create(title, [1, 2])
    if not result:
        if result.outcome is Outcome.CONNECTIVITY_ERROR:
            ...
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from bookcatalog.exceptions.base import ConnectivityError, RepositoryError

T = TypeVar("T")


class Outcome(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    PERSISTENCE_ERROR = "persistence_error"
    CONNECTIVITY_ERROR = "connectivity_error"


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    outcome: Outcome
    value: T | None = None
    error: RepositoryError | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: T | None = None) -> StoreResult[T]:
        return cls(Outcome.SUCCESS, value=value)

    @classmethod
    def not_found(cls, message: str) -> StoreResult[T]:
        return cls(Outcome.NOT_FOUND, message=message)

    @classmethod
    def failure(cls, error: RepositoryError) -> StoreResult[T]:
        """Wrap a translated storage error, tagging connectivity separately."""
        outcome = Outcome.CONNECTIVITY_ERROR if isinstance(error, ConnectivityError) else Outcome.PERSISTENCE_ERROR
        return cls(outcome, error=error, message=error.message)


__all__ = ["Outcome", "StoreResult"]
