"""
NoteApp Backend - Middleware Package
=====================================

Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Rate Limit rejects abusive clients before any other work
    2. Request ID assigns the correlation ID used in logs and error bodies
    3. Logging records method, path, status and duration
    4. CORS answers preflight requests per the configured policy
"""
