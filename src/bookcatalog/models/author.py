from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from bookcatalog.database.base import Base


class Author(Base):
    """
    SQLAlchemy model for Author.

    The id is assigned by the database on insert; callers never supply it.
    Links to titles live in `author_titles` and are written only by the
    title repository, so no relationship() is declared here.
    """
    __tablename__ = "authors"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False
    )

    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<Author(id={self.id!r}, first_name={self.first_name!r}, last_name={self.last_name!r})>"
