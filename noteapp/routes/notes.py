"""
NoteApp Backend - Notes Route Handlers
=======================================

What:  CRUD endpoints under /api/notes plus the attachment download.
How:   Parses path parameters and multipart forms, hands a fully read
       IncomingFile to NoteService, returns NoteView JSON.
Who:   Called by the web client.

Route Inventory:
    GET    /api/notes              list, most recently updated first
    GET    /api/notes/{id}         single note
    POST   /api/notes              create (multipart: title, content, file?)
    PUT    /api/notes/{id}         update (multipart: title, content, file?)
    DELETE /api/notes/{id}         delete, plain-text confirmation
    GET    /api/notes/{id}/file    attachment bytes as a download

Errors raised by the service are turned into JSON responses by the global
handlers in main.py; nothing here catches them.
"""

import logging
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from noteapp.database import get_db_session
from noteapp.exceptions import ValidationError
from noteapp.schemas.note import ErrorResponse, NoteView
from noteapp.services.attachment_base import IncomingFile
from noteapp.services.note_service import NoteService, get_note_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notes", tags=["Notes"])

DELETE_CONFIRMATION = "Note deleted successfully"


async def read_upload(file: Optional[UploadFile], max_file_size: int) -> Optional[IncomingFile]:
    """
    Read a multipart file part into an IncomingFile.

    Returns None when no file was sent or the part is empty. The size the
    client declared is checked before the body is read, so an oversized
    upload is rejected without buffering it.
    """
    if file is None:
        return None
    try:
        if file.size is not None and file.size > max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum limit of {max_file_size / (1024 * 1024):g}MB",
                field="file",
                context={"max_size_bytes": max_file_size, "reported_size": file.size},
            )
        content = await file.read()
    finally:
        await file.close()

    if not content:
        return None

    logger.debug("Received upload: filename=%s, size=%d bytes", file.filename, len(content))
    return IncomingFile(
        filename=file.filename or "file",
        content=content,
        content_type=file.content_type,
    )


def content_disposition(file_name: str) -> str:
    """
    attachment; filename="<name>"

    Non-ASCII names get an RFC 6266 filename* parameter as well; the plain
    filename keeps only the ASCII characters.
    """
    ascii_name = file_name.encode("ascii", "ignore").decode("ascii").replace('"', "")
    ascii_name = ascii_name or "attachment"
    header = f'attachment; filename="{ascii_name}"'
    if ascii_name != file_name:
        header += f"; filename*=UTF-8''{quote(file_name)}"
    return header


@router.get(
    "",
    response_model=List[NoteView],
    summary="List all notes",
    description="Returns every note, most recently updated first.",
)
async def list_notes(
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> List[NoteView]:
    return await service.list_notes(db)


@router.get(
    "/{note_id}",
    response_model=NoteView,
    responses={404: {"description": "Note not found", "model": ErrorResponse}},
    summary="Get a single note by ID",
)
async def get_note(
    note_id: int,
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> NoteView:
    return await service.get_note(db, note_id)


@router.post(
    "",
    status_code=201,
    response_model=NoteView,
    responses={
        400: {"description": "Blank title or file too large", "model": ErrorResponse},
        500: {"description": "Attachment could not be stored", "model": ErrorResponse},
    },
    summary="Create a note",
    description=(
        "Multipart form with `title`, `content` and an optional `file` "
        "(max 5MB by default)."
    ),
)
async def create_note(
    title: str = Form(..., description="Note title"),
    content: str = Form("", description="Note body"),
    file: Optional[UploadFile] = File(None, description="Optional attachment"),
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> NoteView:
    upload = await read_upload(file, service.max_file_size)
    return await service.create_note(db, title=title, content=content, upload=upload)


@router.put(
    "/{note_id}",
    response_model=NoteView,
    responses={
        400: {"description": "Blank title or file too large", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
        500: {"description": "Attachment could not be stored", "model": ErrorResponse},
    },
    summary="Update a note",
    description=(
        "Title and content are always replaced. The attachment is replaced "
        "only when a new file is sent."
    ),
)
async def update_note(
    note_id: int,
    title: str = Form(..., description="Note title"),
    content: str = Form("", description="Note body"),
    file: Optional[UploadFile] = File(None, description="Optional replacement attachment"),
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> NoteView:
    # A missing note is reported before the upload is size-checked
    await service.ensure_exists(db, note_id)
    upload = await read_upload(file, service.max_file_size)
    return await service.update_note(
        db, note_id=note_id, title=title, content=content, upload=upload
    )


@router.delete(
    "/{note_id}",
    response_class=PlainTextResponse,
    responses={404: {"description": "Note not found", "model": ErrorResponse}},
    summary="Delete a note",
)
async def delete_note(
    note_id: int,
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> PlainTextResponse:
    await service.delete_note(db, note_id)
    return PlainTextResponse(DELETE_CONFIRMATION)


@router.get(
    "/{note_id}/file",
    response_class=Response,
    responses={
        200: {"description": "Attachment bytes"},
        404: {"description": "Note not found or has no attachment", "model": ErrorResponse},
    },
    summary="Download a note's attachment",
)
async def download_file(
    note_id: int,
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> Response:
    attachment = await service.get_attachment(db, note_id)
    return Response(
        content=attachment.content,
        # Stored type verbatim, no charset parameter added
        headers={
            "Content-Type": attachment.file_type,
            "Content-Disposition": content_disposition(attachment.file_name),
        },
    )
