"""
Notes API — Application Package Initializer
============================================

What: Marks the `notes_api` directory as a Python package.
Why:  Enables module imports like `from notes_api.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The service follows a layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Validation, CRUD statements
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Every request is translated into a single SQL statement and back into JSON.
    The admission gate (notes_api.rate_limit) throttles write requests.
"""

__version__ = "1.0.0"
