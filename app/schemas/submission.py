"""
Blog API — Blog Submission Schemas
====================================

What:  Field rules for the community submission form.

Rules (applied after trimming whitespace):
    name          2–100 chars, HTML-escaped
    email         valid address, lower-cased
    blog_title    3–255 chars, HTML-escaped
    category      1–100 chars, HTML-escaped
    blog_content  10–2000 chars, must be a Google Docs or Drive link
"""

import html
import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.common import CamelModel, SubmissionPagination

GOOGLE_DOC_PATTERN = re.compile(
    r"^(https?://)?(docs\.google\.com|drive\.google\.com)/.+$",
    re.IGNORECASE,
)


class SubmissionCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    blog_title: str = Field(min_length=3, max_length=255)
    category: str = Field(min_length=1, max_length=100)
    blog_content: str = Field(min_length=10, max_length=2000)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("blog_content")
    @classmethod
    def validate_google_link(cls, v: str) -> str:
        if not GOOGLE_DOC_PATTERN.match(v):
            raise ValueError("blog_content must be a Google Docs or Drive link")
        return v

    @field_validator("name", "blog_title", "category")
    @classmethod
    def escape_html(cls, v: str) -> str:
        # Length limits above apply to the raw text; escaping happens after
        return html.escape(v)


class SubmissionResponse(BaseModel):
    id: str
    name: str
    email: str
    blog_title: str
    category: str
    blog_content: str
    status: str
    submission_time: datetime

    model_config = {"from_attributes": True}


class SubmissionCreated(CamelModel):
    message: str = "Blog submission received successfully"
    submission_id: str


class SubmissionListResponse(BaseModel):
    submissions: List[SubmissionResponse]
    pagination: SubmissionPagination


class SubmissionStatusUpdate(BaseModel):
    # Checked against the enum in SubmissionService so the 400 message is ours
    status: Optional[str] = None


class SubmissionStatusUpdated(BaseModel):
    message: str = "Submission status updated successfully"
    status: str
