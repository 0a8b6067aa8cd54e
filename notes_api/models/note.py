"""
Notes API — Note SQLAlchemy Model
==================================

What:  ORM model representing the `notes` table.
Why:   Maps Python objects to database rows for type-safe database operations.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Used by NoteService for CRUD operations and by Alembic for schema management.

Table Design:
    - id: integer primary key assigned by the database (autoincrement)
    - title: short string; the column is wider than MAX_TITLE_LENGTH so the
      limit can be raised through configuration without a migration
    - content: TEXT, length enforced by the service layer
"""

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from notes_api.database import Base


class Note(Base):
    """A note row: identifier, title, content."""

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title={self.title!r})>"
