"""
Blog API — Comment Route Handlers
===================================

What:  Append, list and delete comments on a post.
How:   Delegates to CommentService (the comment ledger). The request body
       is parsed leniently (every field optional) so missing fields produce
       the ledger's own 400 message instead of a generic schema error.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.schemas.comment import CommentCreate, CommentCreated, CommentListResponse
from app.schemas.common import ErrorResponse, MessageResponse
from app.services.comment_service import comment_service
from app.services.pagination import coerce_query_int

router = APIRouter(prefix="/api/blog", tags=["Comments"])


@router.post(
    "/{blog_id}/comment",
    status_code=201,
    response_model=CommentCreated,
    responses={
        400: {"description": "Missing fields, bad email or honeypot filled", "model": ErrorResponse},
        404: {"description": "Blog not found", "model": ErrorResponse},
        409: {"description": "Concurrent comment writes; retry", "model": ErrorResponse},
    },
    summary="Add a comment to a post",
)
async def add_comment(
    blog_id: str,
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db_session),
) -> CommentCreated:
    comment = await comment_service.add_comment(db, blog_id, payload)
    return CommentCreated(comment=comment)


@router.get(
    "/{blog_id}/comments",
    response_model=CommentListResponse,
    responses={404: {"model": ErrorResponse}},
    summary="List a post's comments, newest first",
)
async def list_comments(
    blog_id: str,
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> CommentListResponse:
    return await comment_service.list_comments(
        db,
        blog_id,
        page=coerce_query_int(page, 1),
        limit=coerce_query_int(limit, 10, settings.max_page_size),
    )


@router.delete(
    "/{blog_id}/comment/{comment_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Blog or comment not found", "model": ErrorResponse}},
    summary="Delete a comment",
)
async def delete_comment(
    blog_id: str,
    comment_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await comment_service.delete_comment(db, blog_id, comment_id)
    return MessageResponse(message="Comment deleted successfully")
