"""Create blogs and blog_submissions tables

Revision ID: 001
Revises: None
Create Date: 2024-05-01 00:00:00.000000+00:00

What:  Initial schema: `blogs` (posts with embedded comments) and
       `blog_submissions` (community proposals).
How:   Authors, featured image descriptor and comments are JSON text
       columns. `comments_version` backs the conditional comment writes.

Rollback: downgrade() drops both tables (all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "blogs",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("published_date", sa.Date(), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column(
            "authors",
            sa.Text(),
            nullable=False,
            comment="JSON array of author names, in display order",
        ),
        sa.Column(
            "featured_image",
            sa.Text(),
            nullable=True,
            comment="JSON Cloudinary descriptor (public_id, format, urls, size)",
        ),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column(
            "comments",
            sa.Text(),
            nullable=True,
            comment="JSON array of {id, name, email, text, timestamp}",
        ),
        sa.Column(
            "comments_count",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column(
            "comments_version",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
            comment="Bumped by every comment write; writes are conditional on it",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_blogs_published",
        "blogs",
        [sa.text("published_date DESC"), sa.text("created_at DESC")],
    )
    op.create_index("idx_blogs_category", "blogs", ["category"])

    op.create_table(
        "blog_submissions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("blog_title", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("blog_content", sa.Text(), nullable=False),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'Received'"),
        ),
        sa.Column(
            "submission_time",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('Received', 'Accepted', 'Published')",
            name="ck_blog_submissions_status",
        ),
    )
    op.create_index(
        "idx_blog_submissions_time",
        "blog_submissions",
        [sa.text("submission_time DESC")],
    )
    op.create_index("idx_blog_submissions_status", "blog_submissions", ["status"])


def downgrade() -> None:
    op.drop_index("idx_blog_submissions_status", table_name="blog_submissions")
    op.drop_index("idx_blog_submissions_time", table_name="blog_submissions")
    op.drop_table("blog_submissions")
    op.drop_index("idx_blogs_category", table_name="blogs")
    op.drop_index("idx_blogs_published", table_name="blogs")
    op.drop_table("blogs")
