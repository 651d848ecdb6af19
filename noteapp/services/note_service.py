"""
NoteApp Backend - Note Service (Business Logic Orchestrator)
=============================================================

What:  CRUD workflow for notes and their optional attachment.
How:   Composes an AttachmentStore with database operations on the request's
       AsyncSession. Routes never touch the ORM or the store directly.
Who:   Called by the /api/notes route handlers.

Orchestration Flow (POST /api/notes with a file):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │  Upload  │───▶│  Validate   │───▶│  Store put   │───▶│  Flush   │
    │  (Route) │    │  title/size │    │  (disk/row)  │    │  (DB)    │
    └──────────┘    └─────────────┘    └──────────────┘    └──────────┘

    If the flush fails, the file written by put() is deleted again so no
    orphan is left behind. When an attachment is replaced, the previous file
    is deleted only after the new record state has been flushed; failing to
    delete it is logged and otherwise ignored.

Transactions:
    The service flushes but never commits. get_db_session() commits once the
    route returns, or rolls back if anything raised.
"""

import logging
from datetime import timedelta, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer

from noteapp.config import settings
from noteapp.exceptions import DatabaseError, NotFoundError, ValidationError
from noteapp.models.note import Note, utcnow
from noteapp.schemas.note import NoteView
from noteapp.services.attachment_base import (
    DEFAULT_CONTENT_TYPE,
    AttachmentDownload,
    AttachmentStore,
    IncomingFile,
    build_attachment_store,
)

logger = logging.getLogger(__name__)


class NoteService:
    """
    Business logic layer for note operations.

    Responsibilities:
        - list_notes / get_note: read paths returning NoteView
        - create_note / update_note / delete_note: mutations with attachment
          handling and orphan cleanup
        - get_file_data / get_file_name / get_file_type / get_attachment:
          download support

    Error Handling Strategy:
        Missing rows become NotFoundError, business-rule violations become
        ValidationError, SQLAlchemy failures are wrapped in DatabaseError.
        Store errors (FileStorageError, NoAttachmentError) propagate as-is.
    """

    def __init__(
        self,
        store: Optional[AttachmentStore] = None,
        max_file_size: Optional[int] = None,
    ):
        self.store = store or build_attachment_store()
        self.max_file_size = max_file_size or settings.max_file_size

    # ── Read paths ────────────────────────────────────────────────────────

    async def list_notes(self, db: AsyncSession) -> List[NoteView]:
        """All notes, most recently updated first. Empty list when none exist."""
        query = select(Note).order_by(Note.updated_at.desc(), Note.id.desc())
        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e
        return [NoteView.from_note(note) for note in result.scalars().all()]

    async def get_note(self, db: AsyncSession, note_id: int) -> NoteView:
        """
        Raises:
            NotFoundError: Note with given ID does not exist (→ 404)
        """
        note = await self._load(db, note_id)
        return NoteView.from_note(note)

    async def ensure_exists(self, db: AsyncSession, note_id: int) -> None:
        """Raises NotFoundError when the note does not exist."""
        await self._load(db, note_id)

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create_note(
        self,
        db: AsyncSession,
        title: str,
        content: str,
        upload: Optional[IncomingFile] = None,
    ) -> NoteView:
        """
        Create a note, optionally with an attachment.

        An upload with no bytes counts as "no file", matching what browsers
        send when the file input is left empty.

        Raises:
            ValidationError: Blank title or file larger than max_file_size
            FileStorageError: Attachment could not be written
            DatabaseError: Insert failed
        """
        title = self._validate_title(title)
        upload = self._validate_upload(upload)

        now = utcnow()
        note = Note(title=title, content=content or "", created_at=now, updated_at=now)

        stored_reference = None
        if upload is not None:
            stored_reference = await self.store.put(note, upload)

        db.add(note)
        await self._flush(db, note, orphan=stored_reference)

        logger.info(
            "Note %s created (attachment=%s)",
            note.id,
            upload.filename if upload else None,
        )
        return NoteView.from_note(note)

    async def update_note(
        self,
        db: AsyncSession,
        note_id: int,
        title: str,
        content: str,
        upload: Optional[IncomingFile] = None,
    ) -> NoteView:
        """
        Replace title and content; replace the attachment only if a new
        non-empty file is supplied.

        The new file is validated before anything is touched, so an
        oversized upload leaves the current attachment in place.

        Raises:
            NotFoundError: Note with given ID does not exist
            ValidationError: Blank title or file larger than max_file_size
            FileStorageError: New attachment could not be written
            DatabaseError: Update failed
        """
        note = await self._load(db, note_id)
        title = self._validate_title(title)
        upload = self._validate_upload(upload)

        previous_reference = None
        stored_reference = None
        if upload is not None:
            previous_reference = self.store.reference_of(note)
            stored_reference = await self.store.put(note, upload)

        note.title = title
        note.content = content or ""
        self._touch(note)

        await self._flush(db, note, orphan=stored_reference)

        if previous_reference and previous_reference != stored_reference:
            await self.store.delete(previous_reference)

        logger.info("Note %s updated (attachment replaced=%s)", note.id, upload is not None)
        return NoteView.from_note(note)

    async def delete_note(self, db: AsyncSession, note_id: int) -> None:
        """
        Delete a note and, for disk storage, its backing file.

        The row goes first; the file is removed afterwards on a best-effort
        basis, so the caller sees success even if the file stays on disk.

        Raises:
            NotFoundError: Note with given ID does not exist
            DatabaseError: Delete failed
        """
        note = await self._load(db, note_id)
        reference = self.store.reference_of(note)

        try:
            await db.delete(note)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not delete the note. Please try again.",
                context={"note_id": str(note_id)},
            ) from e

        await self.store.delete(reference)
        logger.info("Note %s deleted", note_id)

    # ── Attachment access ─────────────────────────────────────────────────

    async def get_file_data(self, db: AsyncSession, note_id: int) -> bytes:
        """
        Raises:
            NotFoundError: Note does not exist
            NoAttachmentError: Note has no stored payload
        """
        note = await self._load(db, note_id, with_payload=True)
        return await self.store.get(note)

    async def get_file_name(self, db: AsyncSession, note_id: int) -> Optional[str]:
        note = await self._load(db, note_id)
        return note.file_name

    async def get_file_type(self, db: AsyncSession, note_id: int) -> Optional[str]:
        note = await self._load(db, note_id)
        return note.file_type

    async def get_attachment(self, db: AsyncSession, note_id: int) -> AttachmentDownload:
        """Payload, name and type in one query, for the download route."""
        note = await self._load(db, note_id, with_payload=True)
        content = await self.store.get(note)
        return AttachmentDownload(
            content=content,
            file_name=note.file_name or "attachment",
            file_type=note.file_type or DEFAULT_CONTENT_TYPE,
        )

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _load(
        self,
        db: AsyncSession,
        note_id: int,
        with_payload: bool = False,
    ) -> Note:
        query = select(Note).where(Note.id == note_id)
        if with_payload:
            query = query.options(undefer(Note.file_data))
        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Database error fetching note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the note. Please try again.",
                context={"note_id": str(note_id)},
            ) from e

        note = result.scalar_one_or_none()
        if note is None:
            raise NotFoundError(resource="note", resource_id=note_id)
        return note

    async def _flush(self, db: AsyncSession, note: Note, orphan: Optional[str]) -> None:
        """
        Flush pending changes and reload SQL-computed columns.

        On failure the file written for this request (if any) is removed
        before the error propagates.
        """
        try:
            await db.flush()
            await db.refresh(note)
        except SQLAlchemyError as e:
            await self.store.delete(orphan)
            logger.error("Database error saving note: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the note. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

    @staticmethod
    def _validate_title(title: Optional[str]) -> str:
        cleaned = (title or "").strip()
        if not cleaned:
            raise ValidationError(message="Title must not be empty", field="title")
        return cleaned

    def _validate_upload(self, upload: Optional[IncomingFile]) -> Optional[IncomingFile]:
        if upload is None or upload.is_empty:
            return None
        if upload.size > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=f"File size exceeds maximum limit of {max_mb:g}MB",
                field="file",
                context={"max_size_bytes": self.max_file_size, "actual_size": upload.size},
            )
        return upload

    @staticmethod
    def _touch(note: Note) -> None:
        # updated_at must move forward even when two writes land in the same
        # clock tick
        now = utcnow()
        previous = note.updated_at
        if previous is not None:
            if previous.tzinfo is None:
                previous = previous.replace(tzinfo=timezone.utc)
            if now <= previous:
                now = previous + timedelta(microseconds=1)
        note.updated_at = now


note_service = NoteService()


def get_note_service() -> NoteService:
    """FastAPI dependency returning the process-wide NoteService."""
    return note_service
