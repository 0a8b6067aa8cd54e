# Routes package init
"""
Notes API — API Routes Package
===============================

Route Inventory:
    - notes.py:   POST/GET /notes, GET/PUT/DELETE /notes/{id}
    - health.py:  GET /health

Routes are THIN: they extract input, call NoteService, and shape the
response. Business rules live in notes_api.services.
"""
