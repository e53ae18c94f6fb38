"""
Blog API — Pydantic Schemas
=============================

API contracts, kept separate from the ORM models so the JSON shape
(camelCase wrappers, reduced image descriptors) can differ from the columns.
"""
