# bookcatalog/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   ├── base.py          # catalog-level errors (PersistenceError, ConnectivityError, ...)
# │   ├── classifier.py    # SQL-level classification (constraint kind, connectivity)
# │   └── mapper.py        # raw SQLAlchemy/DBAPI error -> catalog error

from .base import (
    RepositoryError,
    ValidationError,
    PersistenceError,
    DuplicateError,
    ReferentialIntegrityError,
    MissingFieldError,
    ConnectivityError,
)

__all__ = [
    "RepositoryError",
    "ValidationError",
    "PersistenceError",
    "DuplicateError",
    "ReferentialIntegrityError",
    "MissingFieldError",
    "ConnectivityError",
]
