from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from bookcatalog.database.base import Base


class AuthorTitle(Base):
    """
    Association row linking an Author to a Title. No payload.

    Both foreign keys are ON DELETE RESTRICT:
      - deleting an author that still has rows here is rejected by the engine
        (surfaces as ReferentialIntegrityError);
      - deleting a title never cascades; TitleRepository removes these rows
        itself, in the same unit of work, before the parent row.

    The composite primary key makes (author_id, isbn) unique, so inserting the
    same author twice for one title fails the whole batch.
    """
    __tablename__ = "author_titles"
    __table_args__ = (
        Index("ix_author_titles_isbn", "isbn"),
    )

    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("authors.id", ondelete="RESTRICT"),
        primary_key=True
    )

    isbn: Mapped[str] = mapped_column(
        String(20),
        ForeignKey("titles.isbn", ondelete="RESTRICT"),
        primary_key=True
    )

    def __repr__(self) -> str:
        return f"<AuthorTitle(author_id={self.author_id!r}, isbn={self.isbn!r})>"
