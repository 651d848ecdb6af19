"""
NoteApp Backend - Abstract Attachment Store Interface
======================================================

What:  Abstract base class defining the contract for attachment storage.
Why:   The same note workflow runs against two storage variants:
         - DiskAttachmentStore:   bytes on the filesystem, public /uploads URL
         - InlineAttachmentStore: bytes in the notes.file_data column
       NoteService only talks to this interface; the concrete class is picked
       from settings.attachment_storage by build_attachment_store().
How:   Strategy pattern. Each store knows how to put a payload onto a note,
       read it back, and discard a previously stored reference.
"""

import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from noteapp.models.note import Note

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class IncomingFile:
    """An uploaded file, already read into memory by the route."""

    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def is_empty(self) -> bool:
        return not self.content

    def resolved_content_type(self) -> str:
        """
        The declared MIME type as sent, or a guess from the file name when
        the client declared none.
        """
        declared = (self.content_type or "").strip()
        if declared:
            return declared
        guessed, _ = mimetypes.guess_type(self.filename)
        return guessed or DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class AttachmentDownload:
    """Payload plus the metadata the download route puts in its headers."""

    content: bytes
    file_name: str
    file_type: str


class AttachmentStore(ABC):
    """
    Contract:
        - put() persists the payload and sets file_name, file_type and the
          variant's reference/payload column on the note, clearing the other
          variant's column. It returns the stored reference, or None when
          the payload lives on the note itself.
        - get() returns the payload bytes or raises NoAttachmentError.
        - delete() removes a stored reference. It is idempotent and never
          raises: a file that cannot be removed is logged and left behind.
        - reference_of() returns the note's current external reference.

    Implementations:
        - DiskAttachmentStore (file_service.py)
        - InlineAttachmentStore (inline_store.py)
    """

    #: Name used in settings.attachment_storage and in health output
    name: str = "abstract"

    @abstractmethod
    async def put(self, note: Note, upload: IncomingFile) -> Optional[str]:
        """
        Store the upload for `note`.

        Raises:
            ValidationError: Empty payload
            FileStorageError: Payload could not be written
        """

    @abstractmethod
    async def get(self, note: Note) -> bytes:
        """
        Read the payload stored for `note`.

        Raises:
            NoAttachmentError: Nothing stored for this note
            FileStorageError: Payload could not be read
        """

    @abstractmethod
    async def delete(self, reference: Optional[str]) -> None:
        """Best-effort removal of a reference returned by put()."""

    def reference_of(self, note: Note) -> Optional[str]:
        return None

    async def is_healthy(self) -> bool:
        return True


def build_attachment_store(kind: Optional[str] = None) -> AttachmentStore:
    """
    Create the store configured for this deployment.

    Args:
        kind: "disk" or "inline"; defaults to settings.attachment_storage.
    """
    from noteapp.config import settings

    kind = kind or settings.attachment_storage
    if kind == "disk":
        from noteapp.services.file_service import DiskAttachmentStore

        return DiskAttachmentStore()
    if kind == "inline":
        from noteapp.services.inline_store import InlineAttachmentStore

        return InlineAttachmentStore()
    raise ValueError(f"Unknown attachment storage '{kind}'. Must be 'disk' or 'inline'.")
