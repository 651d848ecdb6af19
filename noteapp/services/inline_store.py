"""
NoteApp Backend - Inline Attachment Store
==========================================

What:  Keeps attachment bytes in the notes.file_data column.
Who:   Selected by build_attachment_store() when ATTACHMENT_STORAGE=inline.

There is no external reference: the payload lives and dies with the row,
so delete() has nothing to do and no static /uploads mount is needed.
Downloads go through GET /api/notes/{id}/file.

file_data is a deferred column. get() expects the note to be loaded with
undefer(Note.file_data); NoteService does that for download queries.
"""

import logging
from typing import Optional

from noteapp.exceptions import NoAttachmentError, ValidationError
from noteapp.models.note import Note
from noteapp.services.attachment_base import AttachmentStore, IncomingFile

logger = logging.getLogger(__name__)


class InlineAttachmentStore(AttachmentStore):
    name = "inline"

    async def put(self, note: Note, upload: IncomingFile) -> Optional[str]:
        if upload.is_empty:
            raise ValidationError(
                message="Cannot store empty file",
                field="file",
                context={"filename": upload.filename},
            )
        note.file_name = upload.filename
        note.file_type = upload.resolved_content_type()
        note.file_data = upload.content
        note.attachment_url = None
        logger.debug("Stored %d bytes inline for note %s", upload.size, note.id)
        return None

    async def get(self, note: Note) -> bytes:
        if not note.file_data:
            raise NoAttachmentError(note_id=note.id)
        return note.file_data

    async def delete(self, reference: Optional[str]) -> None:
        # Row deletion (or the overwrite in put) already removed the bytes
        return None
