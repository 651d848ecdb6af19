"""
NoteApp Backend - Inline Attachment Store Unit Tests
=====================================================

What:  Tests for InlineAttachmentStore (bytes kept on the note row).
"""

import pytest

from noteapp.exceptions import NoAttachmentError, ValidationError
from noteapp.models.note import Note
from noteapp.services.attachment_base import IncomingFile, build_attachment_store
from noteapp.services.file_service import DiskAttachmentStore
from noteapp.services.inline_store import InlineAttachmentStore


class TestInlineAttachmentStore:
    @pytest.mark.asyncio
    async def test_put_stores_bytes_on_note(self, inline_store, sample_file):
        note = Note(title="t", content="c", attachment_url="/uploads/old.txt")

        reference = await inline_store.put(note, sample_file)

        assert reference is None
        assert note.file_data == b"hello world"
        assert note.file_name == "hello.txt"
        assert note.file_type == "text/plain"
        assert note.attachment_url is None

    @pytest.mark.asyncio
    async def test_put_empty_rejected(self, inline_store):
        note = Note(title="t", content="c")
        with pytest.raises(ValidationError):
            await inline_store.put(note, IncomingFile("empty.txt", b""))

    @pytest.mark.asyncio
    async def test_get_returns_payload(self, inline_store):
        note = Note(title="t", content="c", file_data=b"abc")
        assert await inline_store.get(note) == b"abc"

    @pytest.mark.asyncio
    async def test_get_without_payload(self, inline_store):
        with pytest.raises(NoAttachmentError):
            await inline_store.get(Note(title="t", content="c"))

    @pytest.mark.asyncio
    async def test_delete_is_noop(self, inline_store):
        await inline_store.delete(None)
        await inline_store.delete("anything")

    def test_has_no_external_reference(self, inline_store):
        note = Note(title="t", content="c", file_data=b"abc")
        assert inline_store.reference_of(note) is None


class TestBuildAttachmentStore:
    def test_inline(self):
        assert isinstance(build_attachment_store("inline"), InlineAttachmentStore)

    def test_disk(self):
        # Uses UPLOAD_DIR from the test environment
        assert isinstance(build_attachment_store("disk"), DiskAttachmentStore)

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown attachment storage"):
            build_attachment_store("s3")
