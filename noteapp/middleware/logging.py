"""
NoteApp Backend - Request Logging Middleware
=============================================

What:  One access-log line per request with method, path, status, duration,
       bytes in and out, request ID and client IP.
Why:   Uvicorn's access log has no request ID, no duration and no sizes;
       sizes matter here because uploads and downloads carry attachments.

Privacy:
    Request bodies are never logged; they contain note text and file bytes.
    Sizes come from the Content-Length headers only.

Log levels follow the status code: 5xx → ERROR, 4xx → WARNING, else INFO.
"""

import logging
import time
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from noteapp.middleware.request_id import request_id_var

logger = logging.getLogger("noteapp.access")

# Probed every few seconds by orchestrators
QUIET_PATHS = {"/health"}


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def _content_length(headers) -> Optional[int]:
    value = headers.get("content-length")
    return int(value) if value and value.isdigit() else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        fields = {
            "request_id": request_id_var.get(""),
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(elapsed_ms, 2),
            "bytes_in": _content_length(request.headers),
            "bytes_out": _content_length(response.headers),
            "client_ip": request.client.host if request.client else "unknown",
        }
        logger.log(
            level_for_status(response.status_code),
            "%(method)s %(path)s %(status)d %(duration_ms).1fms "
            "in=%(bytes_in)s out=%(bytes_out)s [%(request_id)s] from %(client_ip)s",
            fields,
            extra=fields,
        )
        return response
