"""
NoteApp Backend - Note SQLAlchemy Model
========================================

What:  ORM model representing the `notes` table.
Who:   Used by NoteService, the attachment stores and Alembic.

Table Design:
    - Integer primary key: assigned by the database on insert, never changed
    - title / content: free text, both replaced on every update
    - file_name / file_type: original name and MIME type of the attachment
    - attachment_url: public path of an attachment stored on disk
    - file_data: attachment bytes for the inline storage variant
    - created_at / updated_at: UTC, timezone aware

    Only one of attachment_url / file_data is ever populated, depending on
    the configured storage variant. Whether a note "has a file" is never
    stored; it is derived from these columns when building a NoteView.

    file_data is deferred so listing notes never pulls attachment bytes.
    file_size is computed in SQL from file_data for the same reason.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, LargeBinary, String, Text, func
from sqlalchemy.orm import Mapped, column_property, mapped_column

from noteapp.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A user note with an optional single attachment.

    Lifecycle:
        1. Created by POST /api/notes (attachment optional)
        2. Updated by PUT /api/notes/{id} (title/content always, attachment
           only when a new file is supplied)
        3. Deleted by DELETE /api/notes/{id}

    Query Patterns:
        - List notes: SELECT ... ORDER BY updated_at DESC
          → idx_notes_updated_at
        - Get single note: SELECT ... WHERE id = :id
          → primary key
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Server-generated identifier",
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Note title (non-empty)",
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        comment="Note body",
    )

    # ── Attachment metadata ───────────────────────────────────────────────
    file_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Original file name of the attachment",
    )

    file_type: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="MIME type of the attachment",
    )

    # Disk variant: "/uploads/<stored name>"
    attachment_url: Mapped[Optional[str]] = mapped_column(
        String(512),
        nullable=True,
        comment="Public path of an attachment stored on disk",
    )

    # Inline variant: raw bytes. Deferred, load with undefer(Note.file_data).
    file_data: Mapped[Optional[bytes]] = mapped_column(
        LargeBinary,
        nullable=True,
        deferred=True,
        comment="Attachment bytes stored inline",
    )

    # Computed on every SELECT, never written.
    file_size: Mapped[int] = column_property(
        func.coalesce(func.length(file_data), 0)
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        comment="When this note was created (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        comment="When this note was last modified (UTC)",
    )

    __table_args__ = (
        Index("idx_notes_updated_at", updated_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Note(id={self.id}, title={self.title!r}, "
            f"updated_at='{self.updated_at}')>"
        )
