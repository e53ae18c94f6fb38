"""
Blog API — Submission Service
===============================

What:  Intake and moderation of community blog submissions.
Why:   Submissions are proposals (a Google Docs/Drive link plus metadata),
       kept apart from published posts until an editor acts on them.
How:   Field rules live in SubmissionCreate (pydantic); this service
       persists, lists and moves submissions between statuses.
       Rate limiting of the public create endpoint is done by
       RateLimitMiddleware before the request reaches here.
"""

import logging
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.models.submission import SUBMISSION_STATUSES, BlogSubmission
from app.schemas.common import SubmissionPagination
from app.schemas.submission import (
    SubmissionCreate,
    SubmissionCreated,
    SubmissionListResponse,
    SubmissionResponse,
)
from app.services.pagination import PageWindow

logger = logging.getLogger(__name__)


class SubmissionService:

    async def create_submission(
        self,
        db: AsyncSession,
        payload: SubmissionCreate,
    ) -> SubmissionCreated:
        submission = BlogSubmission(
            name=payload.name,
            email=payload.email,
            blog_title=payload.blog_title,
            category=payload.category,
            blog_content=payload.blog_content,
            status="Received",
        )
        try:
            db.add(submission)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Error saving blog submission: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to submit blog",
                context={"error_type": type(e).__name__},
            )

        logger.info("Blog submission %s received (category=%s)", submission.id, payload.category)
        return SubmissionCreated(submission_id=submission.id)

    async def list_submissions(
        self,
        db: AsyncSession,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> SubmissionListResponse:
        """Newest first. An unknown status filter is ignored rather than rejected."""
        conditions = []
        if status in SUBMISSION_STATUSES:
            conditions.append(BlogSubmission.status == status)

        try:
            total = (
                await db.execute(select(func.count(BlogSubmission.id)).where(*conditions))
            ).scalar() or 0
            window = PageWindow(page=page, limit=limit, total=total)

            result = await db.execute(
                select(BlogSubmission)
                .where(*conditions)
                .order_by(BlogSubmission.submission_time.desc())
                .limit(window.limit)
                .offset(window.offset)
            )
            submissions = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing submissions: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to fetch submissions",
                context={"error_type": type(e).__name__},
            )

        return SubmissionListResponse(
            submissions=[SubmissionResponse.model_validate(s) for s in submissions],
            pagination=SubmissionPagination(**window.as_metadata("total_submissions")),
        )

    async def get_submission(self, db: AsyncSession, submission_id: str) -> SubmissionResponse:
        try:
            submission = (
                await db.execute(
                    select(BlogSubmission).where(BlogSubmission.id == submission_id)
                )
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching submission %s: %s", submission_id, str(e))
            raise DatabaseError(
                message="Failed to fetch submission",
                context={"submission_id": submission_id},
            )

        if submission is None:
            raise NotFoundError(resource="submission", resource_id=submission_id)
        return SubmissionResponse.model_validate(submission)

    async def update_status(
        self,
        db: AsyncSession,
        submission_id: str,
        status: Optional[str],
    ) -> str:
        """
        Moves a submission to another status.

        Any transition between the three statuses is allowed. A value outside
        them is rejected before anything is written.
        """
        if status not in SUBMISSION_STATUSES:
            raise ValidationError(
                message="Invalid status value",
                field="status",
                context={"allowed": list(SUBMISSION_STATUSES)},
            )

        try:
            result = await db.execute(
                update(BlogSubmission)
                .where(BlogSubmission.id == submission_id)
                .values(status=status)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            logger.error("Database error updating submission %s: %s", submission_id, str(e))
            raise DatabaseError(
                message="Failed to update submission status",
                context={"submission_id": submission_id},
            )

        if result.rowcount == 0:
            raise NotFoundError(resource="submission", resource_id=submission_id)

        logger.info("Submission %s moved to %s", submission_id, status)
        return status

    async def delete_submission(self, db: AsyncSession, submission_id: str) -> None:
        try:
            result = await db.execute(
                delete(BlogSubmission)
                .where(BlogSubmission.id == submission_id)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            logger.error("Database error deleting submission %s: %s", submission_id, str(e))
            raise DatabaseError(
                message="Failed to delete submission",
                context={"submission_id": submission_id},
            )

        if result.rowcount == 0:
            raise NotFoundError(resource="submission", resource_id=submission_id)
        logger.info("Submission %s deleted", submission_id)


submission_service = SubmissionService()
