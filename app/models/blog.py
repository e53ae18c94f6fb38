"""
Blog API — Blog Post SQLAlchemy Model
=======================================

What:  ORM model for the `blogs` table (the Post aggregate).
Why:   Authors, featured image metadata and comments are denormalized into
       JSON text columns on the post row; there is no comments table.
How:   `JSONText` serializes Python values on write and returns the raw
       column text on read. Decoding is left to
       `app.services.json_columns`, which tolerates legacy or corrupt text.

Table Design:
    - id: UUID string (36 chars); generated by the service, not the database
    - authors: ordered list of names, JSON text
    - featured_image: Cloudinary descriptor, JSON text, nullable
    - comments: ordered list of comment objects, JSON text
    - comments_count: mirrors len(comments); rewritten with every comment write
    - comments_version: bumped on every comment write; comment writes are
      conditional on the version they read (see CommentService)

Index on (published_date DESC, created_at DESC):
    Serves the default "latest" listing order.
"""

import json
import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import Date, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from app.database import Base


class JSONText(TypeDecorator):
    """
    Stores Python values as JSON text; reads back the raw column value.

    Reads are intentionally undecoded: some drivers hand back text, others a
    structured value, and legacy rows may hold text that is not JSON at all.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect) -> Optional[str]:
        if value is None:
            return None
        return json.dumps(value)

    def process_result_value(self, value: Any, dialect) -> Any:
        return value


class Blog(Base):
    """
    A blog post with its embedded comment list.

    Query Patterns:
        - Listing: filtered by category / LIKE search, ordered by date or
          comments_count, LIMIT/OFFSET
        - Detail: SELECT * WHERE id = :id
        - Comment writes: SELECT comments, comments_version WHERE id = :id,
          then UPDATE ... WHERE id = :id AND comments_version = :read
    """

    __tablename__ = "blogs"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    published_date: Mapped[date] = mapped_column(Date, nullable=False)

    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    authors: Mapped[Any] = mapped_column(JSONText, nullable=False)

    featured_image: Mapped[Any] = mapped_column(JSONText, nullable=True)

    body: Mapped[str] = mapped_column(Text, nullable=False)

    comments: Mapped[Any] = mapped_column(JSONText, nullable=True)

    comments_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    comments_version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_blogs_published", published_date.desc(), created_at.desc()),
        Index("idx_blogs_category", "category"),
    )

    def __repr__(self) -> str:
        return f"<Blog(id={self.id}, title='{self.title}', comments={self.comments_count})>"
