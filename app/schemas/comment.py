"""
Blog API — Comment Schemas
============================

Comments are validated by CommentService rather than by pydantic so the
honeypot check runs first and every rejection shares one 400 shape.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.common import CommentPagination


class CommentCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    text: Optional[str] = None
    # Honeypot: hidden in the frontend form, only bots fill it in
    website: Optional[str] = None


class CommentResponse(BaseModel):
    # Defaults tolerate partially corrupt entries in legacy rows
    id: str = ""
    name: str = ""
    email: str = ""
    text: str = ""
    timestamp: str = ""


class CommentCreated(BaseModel):
    message: str = "Comment added successfully"
    comment: CommentResponse


class CommentListResponse(BaseModel):
    comments: List[CommentResponse]
    pagination: CommentPagination
    count: Optional[int] = Field(
        default=None,
        description="Stored comments_count; may differ from totalComments for corrupt rows",
    )
