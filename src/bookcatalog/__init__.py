"""
bookcatalog: authors, titles and the links between them, on async SQLAlchemy.
"""
from .results import Outcome, StoreResult

__all__ = ["Outcome", "StoreResult"]
