"""
NoteApp Backend - Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for each failure kind.
How:   Each exception carries a message, an optional context dict and an
       ErrorKind. Global handlers registered in main.py map the kind to an
       HTTP status code and a structured JSON body.
Who:   Raised by services and middleware; caught by the global handlers.

Exception Hierarchy:
    NoteAppError (base)
    ├── ValidationError          → 400 Bad Request
    ├── NotFoundError            → 404 Not Found
    ├── NoAttachmentError        → 404 Not Found
    ├── FileStorageError         → 500 Internal Server Error
    ├── DatabaseError            → 500 Internal Server Error
    └── RateLimitExceededError   → 429 Too Many Requests

Services never signal failures through message text: callers and handlers
branch on the exception type (or its `kind`), never on `message`.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """
    Closed set of failure kinds surfaced at the HTTP boundary.

    The value doubles as the machine-readable `error` code in responses.
    """

    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    NO_ATTACHMENT = "no_attachment"
    IO_FAILURE = "io_failure"
    DATABASE = "database_error"
    RATE_LIMITED = "rate_limit_exceeded"
    INTERNAL = "internal_server_error"

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.NO_ATTACHMENT: 404,
    ErrorKind.IO_FAILURE: 500,
    ErrorKind.DATABASE: 500,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.INTERNAL: 500,
}


class NoteAppError(Exception):
    """
    Base exception for all NoteApp application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only for client errors)
        kind:     ErrorKind used by the HTTP layer to pick a status code
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code


class ValidationError(NoteAppError):
    """
    Raised when client input fails a business rule.

    When:    Oversized file, empty file handed to a store, blank title.
    HTTP:    400 Bad Request

    Schema-level problems (missing form fields, non-integer ids) are still
    reported by FastAPI as 422.
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(NoteAppError):
    """
    Raised when a requested note does not exist.

    SQLAlchemy returns None for missing rows; the service layer converts
    that None into this exception so routes never check for it.
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource.capitalize()} not found with id: {resource_id}"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class NoAttachmentError(NoteAppError):
    """Raised when a download is requested for a note without a stored payload."""

    kind = ErrorKind.NO_ATTACHMENT

    def __init__(
        self,
        note_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = "This note has no attachment"
        if note_id is not None:
            message = f"Note {note_id} has no attachment"
        ctx = context or {}
        if note_id is not None:
            ctx["note_id"] = str(note_id)
        super().__init__(message=message, context=ctx)


class FileStorageError(NoteAppError):
    """
    Raised when reading or writing an attachment on disk fails.

    When:    Disk full, permission denied, upload directory missing.
    HTTP:    500 Internal Server Error

    The OS error and the path go into `context` for the server log only.
    """

    kind = ErrorKind.IO_FAILURE

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(NoteAppError):
    """
    Raised when a database operation fails unexpectedly.

    The message returned to the client is always generic; the SQL error is
    logged server-side only.
    """

    kind = ErrorKind.DATABASE

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(NoteAppError):
    """Raised when a client exceeds the per-IP request budget."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
