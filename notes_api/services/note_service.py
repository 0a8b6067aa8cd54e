"""
Notes API — Note Service (Business Logic)
==========================================

What:  CRUD operations on the notes table plus input validation.
Why:   Keeps SQL and validation rules independent of HTTP concerns.
How:   Each public method issues one statement through the async session it
       receives; commit happens in get_db_session after the handler returns.
Who:   Called by route handlers in notes_api.routes.notes.

Error Handling Strategy:
    - Missing rows become NotFoundError (404)
    - Over-long fields and malformed IDs become ValidationError (400)
    - SQLAlchemy failures are logged and wrapped in DatabaseError (500)
"""

import logging
import re
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notes_api.config import settings
from notes_api.exceptions import DatabaseError, NotFoundError, ValidationError
from notes_api.models.note import Note
from notes_api.schemas.note import (
    DeleteResponse,
    NoteCreate,
    NoteListResult,
    NoteResponse,
    NoteUpdate,
)

logger = logging.getLogger(__name__)


# Range of the Integer id column (signed 32-bit)
NOTE_ID_MIN = -(2 ** 31)
NOTE_ID_MAX = 2 ** 31 - 1

_NOTE_ID_PATTERN = re.compile(r"[+-]?[0-9]+")


def parse_note_id(raw: str) -> int:
    """
    Convert a path segment into a note ID.

    Only an optional sign followed by ASCII digits is accepted; whitespace,
    `_` separators and non-ASCII digits are rejected even though int()
    would take them.

    Raises:
        ValidationError: `raw` is not a base-10 integer, or does not fit
            the id column.
    """
    if not isinstance(raw, str) or not _NOTE_ID_PATTERN.fullmatch(raw):
        raise ValidationError(
            message="Invalid ID format",
            field="id",
            context={"value": raw},
        )

    note_id = int(raw)
    if not NOTE_ID_MIN <= note_id <= NOTE_ID_MAX:
        raise ValidationError(
            message="Invalid ID format",
            field="id",
            context={"value": raw, "min": NOTE_ID_MIN, "max": NOTE_ID_MAX},
        )
    return note_id


def validate_note_fields(title: str, content: str) -> None:
    """
    Enforce the configured title and content length limits.

    Title is checked first; only the first violation is reported.
    """
    # Limits count characters, not UTF-8 bytes
    if len(title) > settings.max_title_length:
        raise ValidationError(
            message=(
                f"Title exceeds maximum length of: {settings.max_title_length} characters"
            ),
            field="title",
            context={"max_length": settings.max_title_length},
        )
    if len(content) > settings.max_content_length:
        raise ValidationError(
            message=(
                f"Content exceeds maximum length of: {settings.max_content_length} characters"
            ),
            field="content",
            context={"max_length": settings.max_content_length},
        )


def _to_response(note: Note) -> NoteResponse:
    return NoteResponse(id=note.id, title=note.title, content=note.content)


class NoteService:
    """
    Stateless business logic layer for note operations.

    Responsibilities:
        - list_notes():  all notes ordered by id, optionally windowed
        - get_note():    single note with not-found handling
        - create_note(): validate and insert
        - update_note(): check existence, validate and update
        - delete_note(): delete with not-found handling
    """

    async def list_notes(
        self,
        db: AsyncSession,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> NoteListResult:
        """
        List notes ordered by id ascending.

        Args:
            db: Async database session
            limit: Maximum rows to return (None returns every row)
            offset: Rows to skip before the first returned note

        Returns:
            NoteListResult with the notes and the total row count.
            An empty table yields an empty list.
        """
        try:
            query = select(Note).order_by(Note.id)
            if offset:
                query = query.offset(offset)
            if limit is not None:
                query = query.limit(limit)

            result = await db.execute(query)
            notes = list(result.scalars().all())

            count_result = await db.execute(select(func.count(Note.id)))
            total_count = count_result.scalar() or 0

        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to fetch notes",
                context={"error_type": type(e).__name__},
            )

        return NoteListResult(
            notes=[_to_response(note) for note in notes],
            total_count=total_count,
        )

    async def _fetch(self, db: AsyncSession, note_id: int) -> Note:
        try:
            result = await db.execute(select(Note).where(Note.id == note_id))
            note = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the note. Please try again.",
                context={"note_id": note_id, "error_type": type(e).__name__},
            )

        if note is None:
            raise NotFoundError(resource="note", resource_id=str(note_id))
        return note

    async def get_note(self, db: AsyncSession, note_id: int) -> NoteResponse:
        """
        Retrieve a single note by ID.

        Raises:
            NotFoundError: No row with this id (→ 404)
            DatabaseError: Query execution failed (→ 500)
        """
        note = await self._fetch(db, note_id)
        return _to_response(note)

    async def create_note(self, db: AsyncSession, payload: NoteCreate) -> NoteResponse:
        """
        Validate and insert a new note.

        The flush sends the INSERT so the database-assigned id is available
        in the response; the transaction is committed by get_db_session.
        """
        validate_note_fields(payload.title, payload.content)

        note = Note(title=payload.title, content=payload.content)
        try:
            db.add(note)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating note: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to create note",
                context={"error_type": type(e).__name__},
            )

        logger.info("Note %s created", note.id)
        return _to_response(note)

    async def update_note(
        self,
        db: AsyncSession,
        note_id: int,
        payload: NoteUpdate,
    ) -> NoteResponse:
        """
        Replace the title and content of an existing note.

        Order of checks: existence (404) before length limits (400).
        """
        note = await self._fetch(db, note_id)
        validate_note_fields(payload.title, payload.content)

        note.title = payload.title
        note.content = payload.content
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Failed to update note",
                context={"note_id": note_id, "error_type": type(e).__name__},
            )

        logger.info("Note %s updated", note_id)
        return _to_response(note)

    async def delete_note(self, db: AsyncSession, note_id: int) -> DeleteResponse:
        """
        Delete a note by ID.

        The affected row count decides between success and NotFoundError.
        """
        try:
            result = await db.execute(delete(Note).where(Note.id == note_id))
        except SQLAlchemyError as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Failed to delete note",
                context={"note_id": note_id, "error_type": type(e).__name__},
            )

        if not result.rowcount:
            raise NotFoundError(resource="note", resource_id=str(note_id))

        logger.info("Note %s deleted", note_id)
        return DeleteResponse(message=f"Note {note_id} deleted")


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
