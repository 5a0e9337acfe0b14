from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from bookcatalog.database.base import Base


class Title(Base):
    """
    SQLAlchemy model for Title.

    The isbn is the caller-assigned primary key. Everything else is mutable
    through `TitleRepository.update`.
    """
    __tablename__ = "titles"

    # Stored as given (with or without hyphens); the catalog does not normalise ISBNs.
    isbn: Mapped[str] = mapped_column(
        String(20),
        primary_key=True
    )

    name: Mapped[str] = mapped_column(
        String(500),
        nullable=False
    )

    edition_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False
    )

    # A year string such as "2020", kept as text the way publishers print it.
    copyright_year: Mapped[str] = mapped_column(
        String(10),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<Title(isbn={self.isbn!r}, name={self.name!r}, edition_number={self.edition_number!r})>"
