"""
NoteApp Backend - Services Layer
=================================

Service Inventory:
    - AttachmentStore (abstract): put / get / delete contract for attachments
    - DiskAttachmentStore: files in the upload directory, public /uploads URLs
    - InlineAttachmentStore: bytes in the notes.file_data column
    - NoteService: note CRUD, validation and attachment orchestration

The attachment variant is chosen per deployment through ATTACHMENT_STORAGE.
"""
