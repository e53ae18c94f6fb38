"""
Blog API — Blog Submission Route Handlers
===========================================

What:  Public intake (POST) and editor moderation (list, get, status,
       delete) of community submissions.
Why:   Mounted under /api/blog/submission; main.py includes this router
       before the blog router so "submission" is never read as a blog id.

POST is rate-limited per client IP by RateLimitMiddleware.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.submission import (
    SubmissionCreate,
    SubmissionCreated,
    SubmissionListResponse,
    SubmissionResponse,
    SubmissionStatusUpdate,
    SubmissionStatusUpdated,
)
from app.services.pagination import coerce_query_int
from app.services.submission_service import submission_service

router = APIRouter(prefix="/api/blog/submission", tags=["Submissions"])


@router.post(
    "",
    status_code=201,
    response_model=SubmissionCreated,
    responses={
        400: {"description": "Invalid fields", "model": ErrorResponse},
        429: {"description": "Too many submissions", "model": ErrorResponse},
    },
    summary="Submit a blog proposal (Google Docs or Drive link)",
)
async def create_submission(
    payload: SubmissionCreate,
    db: AsyncSession = Depends(get_db_session),
) -> SubmissionCreated:
    return await submission_service.create_submission(db, payload)


@router.get("", response_model=SubmissionListResponse, summary="List submissions, newest first")
async def list_submissions(
    status: Optional[str] = Query(default=None, description="Received, Accepted or Published"),
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> SubmissionListResponse:
    return await submission_service.list_submissions(
        db,
        status=status,
        page=coerce_query_int(page, 1),
        limit=coerce_query_int(limit, 10, settings.max_page_size),
    )


@router.get(
    "/{submission_id}",
    response_model=SubmissionResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a submission",
)
async def get_submission(
    submission_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> SubmissionResponse:
    return await submission_service.get_submission(db, submission_id)


@router.patch(
    "/{submission_id}/status",
    response_model=SubmissionStatusUpdated,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Change a submission's status",
)
async def update_submission_status(
    submission_id: str,
    payload: SubmissionStatusUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> SubmissionStatusUpdated:
    status = await submission_service.update_status(db, submission_id, payload.status)
    return SubmissionStatusUpdated(status=status)


@router.delete(
    "/{submission_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a submission",
)
async def delete_submission(
    submission_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await submission_service.delete_submission(db, submission_id)
    return MessageResponse(message="Submission deleted successfully")
