"""
NoteApp Backend - Disk Attachment Store
========================================

What:  Stores attachments as files in the upload directory.
How:   Every upload gets a collision-resistant name, is written with async
       file I/O, and is exposed publicly as /uploads/<stored name>.
Who:   Selected by build_attachment_store() when ATTACHMENT_STORAGE=disk.

Naming scheme:
    <uuid4 hex>_<sanitized original name>
    e.g. 3f2b9c0e9d7a4c1f8e6b2a1d0c9e8f7a_quarterly report.pdf

    The random prefix makes names unique even under concurrent uploads; the
    original name is kept so the file stays recognizable on disk and keeps
    its extension. Directory components and unsafe characters are stripped
    from the original name, so a stored name never escapes the upload
    directory.

Failure model:
    Writes and reads raise FileStorageError. Deletes never raise: removing a
    file that is already gone is a no-op, and any other OS error is logged
    as a warning and left for manual cleanup.
"""

import logging
import os
import re
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from noteapp.config import settings
from noteapp.exceptions import FileStorageError, NoAttachmentError, ValidationError
from noteapp.models.note import Note
from noteapp.services.attachment_base import AttachmentStore, IncomingFile

logger = logging.getLogger(__name__)

# Public URL prefix; main.py mounts the upload directory here
UPLOAD_URL_PREFIX = "/uploads/"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._ -]")
_MAX_ORIGINAL_NAME = 150


def sanitize_filename(filename: Optional[str]) -> str:
    """
    Reduce a client-supplied file name to a safe single path component.

    Keeps letters, digits, dot, underscore, space and hyphen. Returns
    "file" when nothing usable is left.
    """
    # Windows browsers may send full paths
    name = (filename or "").replace("\\", "/").split("/")[-1]
    name = _UNSAFE_CHARS.sub("_", name).strip(" .")
    if len(name) > _MAX_ORIGINAL_NAME:
        stem, ext = os.path.splitext(name)
        name = stem[: _MAX_ORIGINAL_NAME - len(ext)] + ext
    return name or "file"


class DiskAttachmentStore(AttachmentStore):
    """
    Attachment store backed by a directory on the local filesystem.

    Directory Structure:
        uploads/
        ├── 3f2b9c0e..._notes.txt
        └── 9a8b7c6d..._photo.png

    The directory is created on construction; main.py also creates it on
    startup so the static /uploads mount always has a target.
    """

    name = "disk"

    def __init__(self, upload_dir: Optional[str] = None):
        """
        Args:
            upload_dir: Override the configured directory (used in tests).
        """
        self.upload_dir = Path(upload_dir or settings.upload_dir).resolve()
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileStorageError(
                message="Could not create upload directory",
                context={"path": str(self.upload_dir), "os_error": str(e)},
            ) from e
        logger.info("DiskAttachmentStore initialized with upload_dir=%s", self.upload_dir)

    # ── Naming ────────────────────────────────────────────────────────────

    def generate_stored_name(self, filename: Optional[str]) -> str:
        return f"{uuid.uuid4().hex}_{sanitize_filename(filename)}"

    def path_for(self, stored_name: str) -> Path:
        """
        Absolute path of a stored name inside the upload directory.

        Raises:
            ValidationError if the name resolves outside the upload directory
        """
        path = (self.upload_dir / stored_name).resolve()
        if path.parent != self.upload_dir:
            raise ValidationError(
                message="Invalid attachment reference",
                field="file",
                context={"reference": stored_name},
            )
        return path

    @staticmethod
    def url_for(stored_name: str) -> str:
        return f"{UPLOAD_URL_PREFIX}{stored_name}"

    def reference_of(self, note: Note) -> Optional[str]:
        url = note.attachment_url
        if not url:
            return None
        if url.startswith(UPLOAD_URL_PREFIX):
            return url[len(UPLOAD_URL_PREFIX):]
        return url

    # ── Low-level file operations ─────────────────────────────────────────

    async def store_file(self, content: bytes, filename: Optional[str]) -> str:
        """
        Write bytes under a freshly generated name.

        Returns:
            The stored name (the reference recorded on the note)

        Raises:
            ValidationError: Empty content
            FileStorageError: Write failed (disk full, permission denied, ...)
        """
        if not content:
            raise ValidationError(
                message="Cannot store empty file",
                field="file",
                context={"filename": filename},
            )

        stored_name = self.generate_stored_name(filename)
        path = self.path_for(stored_name)

        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save the uploaded file. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            ) from e

        logger.info("File stored: %s (%d bytes)", stored_name, len(content))
        return stored_name

    async def read_file(self, stored_name: str) -> bytes:
        """
        Read a stored file back into memory.

        Raises:
            FileNotFoundError: The file is gone
            FileStorageError: Any other read failure
        """
        path = self.path_for(stored_name)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            raise
        except OSError as e:
            logger.error("Failed to read file %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to read the attachment. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            ) from e

    # ── AttachmentStore contract ──────────────────────────────────────────

    async def put(self, note: Note, upload: IncomingFile) -> Optional[str]:
        stored_name = await self.store_file(upload.content, upload.filename)
        note.file_name = upload.filename
        note.file_type = upload.resolved_content_type()
        note.attachment_url = self.url_for(stored_name)
        note.file_data = None
        return stored_name

    async def get(self, note: Note) -> bytes:
        reference = self.reference_of(note)
        if not reference:
            raise NoAttachmentError(note_id=note.id)
        try:
            return await self.read_file(reference)
        except FileNotFoundError:
            # Record points at a file that no longer exists on disk
            logger.warning("Attachment file missing for note %s: %s", note.id, reference)
            raise NoAttachmentError(note_id=note.id, context={"reference": reference})

    async def delete(self, reference: Optional[str]) -> None:
        """
        Remove a stored file if it exists.

        Cleanup is best-effort; failing to delete a file is not a
        user-facing error.
        """
        if not reference:
            return
        try:
            path = self.path_for(reference)
        except ValidationError:
            logger.warning("Refusing to delete file outside upload dir: %s", reference)
            return

        try:
            await aiofiles.os.remove(path)
            logger.info("Deleted file: %s", reference)
        except FileNotFoundError:
            logger.debug("Delete: file already gone: %s", reference)
        except OSError as e:
            logger.warning("Could not delete file %s: %s", reference, str(e))

    async def is_healthy(self) -> bool:
        return self.upload_dir.is_dir() and os.access(self.upload_dir, os.W_OK)
