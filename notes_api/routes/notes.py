"""
Notes API — Notes Route Handlers
=================================

What:  CRUD endpoints for the note resource.
How:   Parse path/query/body, delegate to NoteService, set status and headers.

Route Inventory:
    POST   /notes        create (admission gated)  → 201
    GET    /notes        list                      → 200, X-Total-Count
    GET    /notes/{id}   read                      → 200
    PUT    /notes/{id}   replace (admission gated) → 200
    DELETE /notes/{id}   delete                    → 200 {"message": ...}
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from notes_api.database import get_db_session
from notes_api.rate_limit import require_admission
from notes_api.schemas.note import (
    DeleteResponse,
    ErrorResponse,
    NoteCreate,
    NoteResponse,
    NoteUpdate,
)
from notes_api.services.note_service import note_service, parse_note_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notes", tags=["Notes"])


@router.post(
    "",
    status_code=201,
    response_model=NoteResponse,
    dependencies=[Depends(require_admission)],
    responses={
        400: {"description": "Invalid body or field too long", "model": ErrorResponse},
        429: {"description": "Write rate limit exceeded", "model": ErrorResponse},
    },
    summary="Create a note",
)
async def create_note(
    payload: NoteCreate,
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    """Store a new note and return it with its assigned id."""
    return await note_service.create_note(db=db, payload=payload)


@router.get(
    "",
    response_model=List[NoteResponse],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List notes",
    description=(
        "Returns notes ordered by id. Without `limit` every note is returned. "
        "The total number of notes is sent in the X-Total-Count header."
    ),
)
async def list_notes(
    response: Response,
    limit: int | None = Query(default=None, ge=1, le=100, description="Max notes to return"),
    offset: int = Query(default=0, ge=0, description="Notes to skip"),
    db: AsyncSession = Depends(get_db_session),
) -> List[NoteResponse]:
    result = await note_service.list_notes(db=db, limit=limit, offset=offset)
    response.headers["X-Total-Count"] = str(result.total_count)
    return result.notes


@router.get(
    "/{note_id}",
    response_model=NoteResponse,
    responses={
        400: {"description": "Invalid ID format", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
    },
    summary="Get a single note by ID",
)
async def get_note(
    note_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.get_note(db=db, note_id=parse_note_id(note_id))


@router.put(
    "/{note_id}",
    response_model=NoteResponse,
    dependencies=[Depends(require_admission)],
    responses={
        400: {"description": "Invalid ID, body or field length", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
        429: {"description": "Write rate limit exceeded", "model": ErrorResponse},
    },
    summary="Replace a note's title and content",
)
async def update_note(
    note_id: str,
    payload: NoteUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.update_note(
        db=db, note_id=parse_note_id(note_id), payload=payload
    )


@router.delete(
    "/{note_id}",
    response_model=DeleteResponse,
    responses={
        400: {"description": "Invalid ID format", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
    },
    summary="Delete a note",
)
async def delete_note(
    note_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> DeleteResponse:
    return await note_service.delete_note(db=db, note_id=parse_note_id(note_id))
