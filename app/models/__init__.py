"""
Blog API — ORM Models
=======================

Importing this package registers every table with `Base.metadata`
(used by `Database.create_all()` and Alembic autogenerate).
"""

from app.models.blog import Blog, JSONText
from app.models.submission import BlogSubmission, SUBMISSION_STATUSES

__all__ = ["Blog", "BlogSubmission", "JSONText", "SUBMISSION_STATUSES"]
