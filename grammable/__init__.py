"""
Grammable — Application Package Initializer
=============================================

What: Marks the `grammable` directory as a Python package.
Who:  Imported by uvicorn (`grammable.main:app`), Alembic, and pytest.

Architecture Note:
    The backend is layered:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Auth (current user dependency)    │  ← session cookie → User | None
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← lookup, ownership, validation
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes raise nothing themselves; services raise GrammableError subclasses
    and the handlers in main.py turn them into redirects or status codes.
"""

__version__ = "1.0.0"
