"""
NoteApp Backend - API Routes Package
=====================================

Route Inventory:
    - notes.py:   /api/notes CRUD and /api/notes/{id}/file download
    - health.py:  GET /health

Routes stay thin: they parse the request, call NoteService and pick the
status code. Business rules live in the services package.
"""
