"""
NoteApp Backend - Health Check Route
=====================================

What:  GET /health for container health checks and load balancers.
How:   Runs `SELECT 1` against the database and asks the attachment store
       whether it can accept writes.

Status levels:
    - healthy:   database reachable and storage writable (HTTP 200)
    - unhealthy: either check failed (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from noteapp import __version__
from noteapp.schemas.note import HealthResponse
from noteapp.services.note_service import NoteService, get_note_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "A dependency is down", "model": HealthResponse}},
)
async def health_check(service: NoteService = Depends(get_note_service)):
    db_status = "connected"
    storage_status = "inline" if service.store.name == "inline" else "writable"
    overall = "healthy"

    try:
        from noteapp.database import engine

        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not await service.store.is_healthy():
        storage_status = "unwritable"
        overall = "unhealthy"
        logger.warning("Health check: attachment storage is not writable")

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall != "healthy":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
