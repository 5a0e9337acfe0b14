from .base import Base
from .provider import ConnectionProvider
from .unit_of_work import UnitOfWork

__all__ = ["Base", "ConnectionProvider", "UnitOfWork"]
