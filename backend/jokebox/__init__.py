"""
Jokebox Backend: Application Package
=====================================

A small joke-sharing service: logged-in users submit, view, and delete
short jokes.

    ┌─────────────────────────────────────┐
    │         Routes (API Layer)          │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Auth (identity from the session)  │
    ├─────────────────────────────────────┤
    │      Services (Business Logic)      │  ← validation, ownership
    ├─────────────────────────────────────┤
    │     Models & Schemas (Data)         │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │      Database (Persistence)         │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
