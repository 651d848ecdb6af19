"""
NoteApp Backend - FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers, routers and, for
       the disk storage variant, the static /uploads mount.
Who:   uvicorn (`uvicorn noteapp.main:app`) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────────────┐  │
    │  │  Rate Limit  │→│ Req ID   │→│  Logging        │  │
    │  └──────────────┘ └──────────┘ └─────────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌──────────────┐ ┌────────────┐   │
    │  │ /api/notes   │ │ /uploads/**  │ │ /health    │   │
    │  └──────────────┘ └──────────────┘ └────────────┘   │
    │                                                     │
    │  Exception Handlers (by ErrorKind):                 │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ Validation→400 │ NotFound→404 │ IO/DB→500    │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from noteapp import __version__
from noteapp.config import settings
from noteapp.database import create_tables, dispose_engine, wait_for_database
from noteapp.exceptions import ErrorKind, NoteAppError, RateLimitExceededError
from noteapp.middleware.logging import RequestLoggingMiddleware
from noteapp.middleware.rate_limit import RateLimitMiddleware
from noteapp.middleware.request_id import RequestIDMiddleware, request_id_var
from noteapp.routes import health, notes
from noteapp.services.file_service import UPLOAD_URL_PREFIX, DiskAttachmentStore
from noteapp.services.note_service import note_service

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (captured by Docker / systemd)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # These log every request or statement at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Ensure the upload directory exists (disk storage)
        3. Wait for the database, optionally create the schema

    Shutdown:
        Dispose the database engine.

    A database that never comes up is logged but does not abort startup;
    /health reports it as unhealthy so orchestrators can restart the pod.
    """
    setup_logging()
    logger.info("NoteApp Backend %s starting up...", __version__)
    logger.info("Attachment storage: %s", settings.attachment_storage)

    if settings.attachment_storage == "disk":
        upload_dir = Path(settings.upload_dir)
        upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Upload directory: %s", upload_dir.resolve())

    try:
        await wait_for_database()
        if settings.auto_create_tables:
            await create_tables()
    except Exception as e:
        logger.error("Database unavailable at startup: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("NoteApp Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_body(kind: ErrorKind, message: str, details=None) -> dict:
    body = {
        "error": kind.value,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Status codes come from the exception's ErrorKind:
        ValidationError         → 400
        NotFoundError           → 404
        NoAttachmentError       → 404
        RateLimitExceededError  → 429
        FileStorageError        → 500
        DatabaseError           → 500
        Exception (fallback)    → 500

    Client errors (4xx) carry their context as `details`. Server errors
    only log it: it may contain file paths or SQL.
    """

    @app.exception_handler(NoteAppError)
    async def handle_app_error(request: Request, exc: NoteAppError):
        rid = request_id_var.get("")
        status = exc.status_code
        headers = {}

        if status >= 500:
            logger.error(
                "[%s] %s: %s | Context: %s", rid, exc.kind.value, exc.message, exc.context
            )
            details = None
        else:
            if exc.kind is ErrorKind.VALIDATION:
                logger.warning("[%s] Validation error: %s", rid, exc.message)
            details = exc.context or None

        if isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = str(exc.retry_after)

        message = exc.message
        if exc.kind is ErrorKind.DATABASE:
            message = "An internal error occurred. Please try again later."

        return JSONResponse(
            status_code=status,
            content=error_body(exc.kind, message, details),
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: stack trace to the log, generic message to the client."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_body(
                ErrorKind.INTERNAL,
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def add_cors(app: FastAPI) -> None:
    """
    Install the deployment's CORS policy.

    CORS_ORIGINS="*" allows any origin without credentials (browsers reject
    a wildcard origin combined with credentials). An explicit list allows
    exactly those origins, with credentials.
    """
    if settings.cors_allow_any_origin:
        origins, credentials = ["*"], False
    else:
        origins, credentials = settings.cors_origins_list, True

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=credentials,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition", "Retry-After"],
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Middleware executes in reverse order of addition, so the chain runs
    RateLimit → RequestID → Logging → GZip → CORS → route.
    """
    app = FastAPI(
        title="NoteApp API",
        description=(
            "Note-taking backend: create, read, update and delete notes, each "
            "with an optional file attachment."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    add_cors(app)
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(notes.router)
    app.include_router(health.router)

    # Disk variant: stored files are public static resources, no access control
    store = note_service.store
    if isinstance(store, DiskAttachmentStore):
        app.mount(
            UPLOAD_URL_PREFIX.rstrip("/"),
            StaticFiles(directory=str(store.upload_dir)),
            name="uploads",
        )

    return app


app = create_app()
