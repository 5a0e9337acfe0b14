from .base_repository import BaseRepository
from .author_repository import AuthorRepository
from .title_repository import TitleRepository

__all__ = ["BaseRepository", "AuthorRepository", "TitleRepository"]
