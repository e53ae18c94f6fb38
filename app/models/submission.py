"""
Blog API — Blog Submission SQLAlchemy Model
=============================================

What:  ORM model for the `blog_submissions` moderation queue.
Why:   Community members propose articles as Google Docs/Drive links; admins
       move them between statuses. Unrelated to the `blogs` table.

Status:
    Received | Accepted | Published. Any value may be set at any time; the
    CHECK constraint only guarantees the value is one of the three.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

SUBMISSION_STATUSES = ("Received", "Accepted", "Published")


class BlogSubmission(Base):
    __tablename__ = "blog_submissions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    blog_title: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    blog_content: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="Received",
        server_default=text("'Received'"),
    )

    submission_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('Received', 'Accepted', 'Published')",
            name="ck_blog_submissions_status",
        ),
        Index("idx_blog_submissions_time", submission_time.desc()),
        Index("idx_blog_submissions_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<BlogSubmission(id={self.id}, status='{self.status}')>"
