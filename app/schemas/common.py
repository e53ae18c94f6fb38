"""
Blog API — Shared Response Schemas
====================================

What:  Pagination blocks, error envelope, health and plain message responses.
Why:   The frontend was written against camelCase pagination keys
       (currentPage, hasNextPage, ...) while entity fields stay snake_case;
       `CamelModel` keeps Python names snake_case and serializes by alias.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase on input; FastAPI emits camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaginationBase(CamelModel):
    current_page: int = Field(description="1-based page number that was served")
    total_pages: int = Field(description="ceil(total / limit)")
    limit: int = Field(description="Page size")
    has_next_page: bool
    has_prev_page: bool


class BlogPagination(PaginationBase):
    total_blogs: int


class CommentPagination(PaginationBase):
    total_comments: int


class SubmissionPagination(PaginationBase):
    total_submissions: int


class MessageResponse(BaseModel):
    message: str


class FieldError(BaseModel):
    field: Optional[str] = None
    message: str


class ErrorResponse(BaseModel):
    """
    Error envelope returned by every exception handler.

    Example:
        {
            "error": "validation_error",
            "message": "Name, email, and text are required",
            "details": {"errors": [{"field": "email", "message": "..."}]},
            "request_id": "a1b2c3d4"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Dict[str, Any]] = Field(default=None)
    errors: Optional[List[FieldError]] = Field(default=None)
    request_id: Optional[str] = Field(default=None)


class HealthResponse(BaseModel):
    status: str = Field(description="healthy, degraded or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    media: str = Field(description="available, unavailable, unconfigured or circuit_open")
    uptime_seconds: float
