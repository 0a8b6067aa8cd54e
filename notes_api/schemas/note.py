"""
Notes API — Pydantic Request/Response Schemas
==============================================

What:  Pydantic models defining the API contract.
Why:   Input parsing, automatic serialization, and OpenAPI doc generation.
How:   FastAPI uses these models to parse request bodies, serialize responses,
       and generate Swagger/OpenAPI documentation automatically.

Design Decision:
    Length limits are NOT declared on the request models. They come from
    settings and are checked by NoteService so the error message names the
    configured limit ("Title exceeds maximum length of: 100 characters").
"""

from typing import List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteCreate(BaseModel):
    """Body of POST /notes."""
    title: str = Field(description="Note title")
    content: str = Field(description="Note body text")


class NoteUpdate(BaseModel):
    """Body of PUT /notes/{id}. Replaces both fields of the stored note."""
    title: str = Field(description="New note title")
    content: str = Field(description="New note body text")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """Full representation of a stored note."""
    id: int = Field(description="Note identifier assigned by the database")
    title: str = Field(description="Note title")
    content: str = Field(description="Note body text")

    model_config = {"from_attributes": True}


class NoteListResult(BaseModel):
    """
    What:  Service-level result of a list query.
    Why:   The route returns `notes` as a bare JSON array and moves
           `total_count` to the X-Total-Count header.
    """
    notes: List[NoteResponse] = Field(default_factory=list)
    total_count: int = Field(default=0, description="Rows in the notes table")


class DeleteResponse(BaseModel):
    message: str = Field(description="Confirmation, e.g. 'Note 3 deleted'")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "rate_limit_exceeded",
            "message": "Rate limit exceeded. Please retry in 1 second.",
            "details": {"retry_after": 1},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
