"""
NoteApp Backend - Pydantic Response Schemas
============================================

What:  Pydantic models defining the API contract between frontend and backend.
How:   FastAPI serializes route return values through these models and
       generates the OpenAPI document from them.

Wire format:
    JSON keys are camelCase (fileName, hasFile, updatedAt) because the web
    client reads them that way. Python code keeps snake_case attribute names;
    the alias generator bridges the two, and FastAPI serializes by alias.

Why schemas are separate from the ORM model:
    NoteView adds a derived field (has_file) and hides storage columns
    (file_data, file_size) that must never be exposed.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from noteapp.models.note import Note


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteView(CamelModel):
    """
    What:  Outward-facing projection of a Note.
    Who:   Returned by every /api/notes endpoint except DELETE and download.

    has_file is computed in `from_note`; it is never read from the database.
    attachment_url is only populated by the disk storage variant.
    """

    id: int = Field(description="Note identifier")
    title: str = Field(description="Note title")
    content: str = Field(description="Note body")
    file_name: Optional[str] = Field(default=None, description="Original attachment file name")
    file_type: Optional[str] = Field(default=None, description="Attachment MIME type")
    attachment_url: Optional[str] = Field(
        default=None,
        description="Public URL of the attachment (disk storage only)",
    )
    has_file: bool = Field(description="Whether the note carries an attachment")
    created_at: datetime = Field(description="Creation timestamp (UTC ISO 8601)")
    updated_at: datetime = Field(description="Last modification timestamp (UTC ISO 8601)")

    @classmethod
    def from_note(cls, note: Note) -> "NoteView":
        """
        Map a persisted Note to its view.

        A note has a file when its external reference is non-empty or its
        inline payload has at least one byte. file_size comes from SQL, so
        the note must be freshly loaded or refreshed after a flush.
        """
        has_file = bool(note.attachment_url) or (note.file_size or 0) > 0
        return cls(
            id=note.id,
            title=note.title,
            content=note.content,
            file_name=note.file_name if has_file else None,
            file_type=note.file_type if has_file else None,
            attachment_url=note.attachment_url or None,
            has_file=has_file,
            created_at=_as_utc(note.created_at),
            updated_at=_as_utc(note.updated_at),
        )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; every timestamp we write is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "Note not found with id: 42",
            "request_id": "a1b2c3d4"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Attachment storage: writable, unwritable, inline")
    uptime_seconds: float = Field(description="Seconds since service started")
