"""
Blog API — Comment Ledger
===========================

What:  Append, list and delete the comments embedded in a blog post row.
Why:   Comments have no table of their own. They live as a JSON list in
       `blogs.comments`, mirrored by `blogs.comments_count`; this service is
       the only writer of either column.
How:   Every mutation is a read-modify-write of the whole list:

           SELECT comments, comments_version FROM blogs WHERE id = :id
           -- decode tolerantly, append / filter in Python
           UPDATE blogs
              SET comments = :list, comments_count = len(:list),
                  comments_version = :version + 1
            WHERE id = :id AND comments_version = :version

       If another request wrote in between, the UPDATE matches no row and the
       whole cycle is retried from a fresh read (tenacity). A plain
       read-then-write would let the second of two concurrent appends
       silently drop the first comment. After `comment_write_attempts` lost
       races the request fails with ConflictError (409).

Listing:
    Full list decoded, stable-sorted by timestamp (newest first; entries
    with unparseable timestamps last; ties keep insertion order), then
    sliced with offset pagination. The stored comments_count is returned
    alongside as `count`; a corrupt column can make it differ from the live
    list length and that divergence is reported rather than repaired.
"""

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Tuple, TypeVar

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from app.config import settings
from app.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from app.models.blog import Blog
from app.schemas.comment import CommentCreate, CommentListResponse, CommentResponse
from app.schemas.common import CommentPagination
from app.services.json_columns import normalize_comment_list
from app.services.pagination import PageWindow

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)

T = TypeVar("T")

Mutation = Callable[[List[Dict[str, Any]]], Tuple[List[Dict[str, Any]], T]]


class StaleCommentVersion(Exception):
    """The conditional UPDATE matched no row: someone else wrote first."""


def utc_timestamp() -> str:
    """ISO-8601 UTC with milliseconds and a Z suffix, e.g. 2024-05-01T09:30:00.123Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def comment_sort_key(comment: Dict[str, Any]) -> datetime:
    raw = comment.get("timestamp")
    if not isinstance(raw, str) or not raw:
        return _OLDEST
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return _OLDEST
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_newest_first(comments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # sorted() stays stable with reverse=True, so equal timestamps keep
    # their stored order
    return sorted(comments, key=comment_sort_key, reverse=True)


def to_comment_response(comment: Dict[str, Any]) -> CommentResponse:
    fields = CommentResponse.model_fields
    return CommentResponse(**{
        key: str(value)
        for key, value in comment.items()
        if key in fields and value is not None
    })


class CommentService:
    """
    The comment ledger for blog posts.

    Stateless; the session is passed per call and only flushed here. The
    request dependency commits.
    """

    def validate_comment(self, payload: CommentCreate) -> Tuple[str, str, str]:
        """
        Returns the trimmed (name, email, text) or raises ValidationError.

        The honeypot is checked first and answered with a deliberately vague
        message so bots cannot tell which rule they tripped.
        """
        if payload.website and payload.website.strip():
            logger.info("Comment rejected by honeypot")
            raise ValidationError(message="False information")

        name = (payload.name or "").strip()
        email = (payload.email or "").strip()
        text = (payload.text or "").strip()

        missing = [
            field for field, value in (("name", name), ("email", email), ("text", text))
            if not value
        ]
        if missing:
            raise ValidationError(
                message="Name, email, and text are required",
                errors=[{"field": field, "message": "This field is required"} for field in missing],
            )

        if not EMAIL_PATTERN.match(email):
            raise ValidationError(message="Invalid email format", field="email")

        return name, email, text

    async def add_comment(
        self,
        db: AsyncSession,
        blog_id: str,
        payload: CommentCreate,
    ) -> CommentResponse:
        name, email, text = self.validate_comment(payload)

        comment = {
            "id": str(uuid.uuid4()),
            "name": name,
            "email": email,
            "text": text,
            "timestamp": utc_timestamp(),
        }

        def append(comments: List[Dict[str, Any]]):
            return comments + [comment], comment

        await self._mutate(db, blog_id, append)
        logger.info("Comment %s added to blog %s", comment["id"], blog_id)
        return to_comment_response(comment)

    async def list_comments(
        self,
        db: AsyncSession,
        blog_id: str,
        page: int = 1,
        limit: int = 10,
    ) -> CommentListResponse:
        try:
            result = await db.execute(
                select(Blog.comments, Blog.comments_count).where(Blog.id == blog_id)
            )
            row = result.one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching comments for %s: %s", blog_id, str(e))
            raise DatabaseError(
                message="Failed to fetch comments",
                context={"blog_id": blog_id, "error_type": type(e).__name__},
            )

        if row is None:
            raise NotFoundError(resource="blog", resource_id=blog_id)

        comments = sort_newest_first(normalize_comment_list(row.comments))
        window = PageWindow(page=page, limit=limit, total=len(comments))

        return CommentListResponse(
            comments=[to_comment_response(c) for c in window.slice(comments)],
            pagination=CommentPagination(**window.as_metadata("total_comments")),
            count=row.comments_count,
        )

    async def delete_comment(
        self,
        db: AsyncSession,
        blog_id: str,
        comment_id: str,
    ) -> None:
        def remove(comments: List[Dict[str, Any]]):
            remaining = [c for c in comments if c.get("id") != comment_id]
            if len(remaining) == len(comments):
                raise NotFoundError(resource="comment", resource_id=comment_id)
            return remaining, None

        await self._mutate(db, blog_id, remove)
        logger.info("Comment %s deleted from blog %s", comment_id, blog_id)

    # ── Versioned read-modify-write ───────────────────────────────────────

    async def _mutate(self, db: AsyncSession, blog_id: str, mutation: Mutation) -> Any:
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(StaleCommentVersion),
                stop=stop_after_attempt(settings.comment_write_attempts),
                wait=wait_random_exponential(multiplier=0.01, max=0.2),
                reraise=True,
            ):
                with attempt:
                    return await self._read_modify_write(db, blog_id, mutation)
        except StaleCommentVersion:
            logger.warning(
                "Gave up writing comments for blog %s after %d conflicting attempts",
                blog_id,
                settings.comment_write_attempts,
            )
            raise ConflictError(
                message="Comments were modified concurrently. Please try again.",
                context={"blog_id": blog_id},
            )
        except SQLAlchemyError as e:
            logger.error("Database error writing comments for %s: %s", blog_id, str(e))
            raise DatabaseError(
                message="Failed to update comments",
                context={"blog_id": blog_id, "error_type": type(e).__name__},
            )

    async def _read_modify_write(
        self,
        db: AsyncSession,
        blog_id: str,
        mutation: Mutation,
    ) -> Any:
        result = await db.execute(
            select(Blog.comments, Blog.comments_version).where(Blog.id == blog_id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError(resource="blog", resource_id=blog_id)

        updated, outcome = mutation(normalize_comment_list(row.comments))

        written = await db.execute(
            update(Blog)
            .where(Blog.id == blog_id, Blog.comments_version == row.comments_version)
            .values(
                comments=updated,
                comments_count=len(updated),
                comments_version=row.comments_version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if written.rowcount != 1:
            logger.info(
                "Comment write for blog %s lost a race at version %d; retrying",
                blog_id,
                row.comments_version,
            )
            raise StaleCommentVersion()

        await db.flush()
        return outcome


comment_service = CommentService()
