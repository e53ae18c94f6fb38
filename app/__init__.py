"""
Blog API — Application Package Initializer
============================================

What: Marks the `app` directory as a Python package.
Who:  Imported by uvicorn (`app.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (blog, comments, intake)  │  ← Business rules, tolerant decode
    ├─────────────────────────────────────┤
    │  Media (Pillow + Cloudinary)        │  ← External collaborator
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Process-scoped async engine
    └─────────────────────────────────────┘

    Routes never touch SQL directly; services receive the request's session
    as an argument so they can be tested against an in-memory database.
"""

__version__ = "1.0.0"
