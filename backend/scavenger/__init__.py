"""
Scavenger Hunt Backend - Application Package
=============================================

What: REST backend for a scavenger hunt game: user accounts and
      versioned waypoint sequences.
Who:  Imported by uvicorn (`scavenger.main:app`), Alembic, and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │     Routes + Authorization Gate     │  ← HTTP concerns, role checks
    ├─────────────────────────────────────┤
    │   Services (Account / Waypoint)     │  ← entity rules, response shaping
    ├─────────────────────────────────────┤
    │   Validation Layer (pure)           │  ← normalization, accumulated errors
    ├─────────────────────────────────────┤
    │   Temporal Record Store             │  ← single-active-row versioning
    ├─────────────────────────────────────┤
    │   Database (async SQLAlchemy)       │  ← sessions, partial unique indexes
    └─────────────────────────────────────┘

    Callers address entities only by natural key (username / sequence name)
    and always observe the current active version.
"""

__version__ = "1.0.0"
