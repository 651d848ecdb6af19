"""
NoteApp Backend - Application Package Initializer
==================================================

What: Marks the `noteapp` directory as a Python package.
Who:  Imported by uvicorn (`noteapp.main:app`), Alembic and pytest.

Architecture Note:
    The backend is split into thin layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← multipart parsing, status codes
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, attachment handling
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic views
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Attachments live behind a single AttachmentStore interface with a disk
    implementation and an inline (database column) implementation.
"""

__version__ = "1.0.0"
