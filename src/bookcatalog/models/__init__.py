"""
Centralized access to the catalog's database models.

Importing this package registers every table on `Base.metadata`, which
`ConnectionProvider.create_schema()` relies on.

    from bookcatalog.models import Author, Title, AuthorTitle
"""

from .author import Author
from .title import Title
from .author_title import AuthorTitle

__all__ = [
    "Author",
    "Title",
    "AuthorTitle",
]
