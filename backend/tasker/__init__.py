"""
Campus Tasker Backend - Application Package
===========================================

What: A campus task marketplace. Users post small paid tasks, other users
      accept and complete them, and both sides rate each other afterwards.
Who:  Imported by uvicorn (tasker.main:app), Alembic, and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (rules + lifecycle)      │  ← transitions, validation
    ├─────────────────────────────────────┤
    │   Policies (row-level access)       │  ← who may read/write a row
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
