"""
PawSpot API — Application Package Initializer
==============================================

What: Marks the `pawspot` directory as a Python package.
Who:  Imported by uvicorn (`pawspot.main:app`), Alembic, and pytest.

Architecture Note:
    The backend is split into the same four layers throughout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (query translation,       │  ← filters, pagination,
    │  pagination, records, photos)       │    validation, orchestration
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
