"""
Blog API — Blog Post Schemas
==============================

What:  Request and response models for /api/blog.
Why:   Entity fields keep their column names (snake_case); wrapper keys the
       frontend already consumes (blogId, featuredImage, sortBy) use aliases.

Featured image exposure:
    Listing and detail responses carry only {public_id, format,
    resource_type}. The full descriptor (with URLs and dimensions) is only
    returned once, by the create endpoint.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.comment import CommentResponse
from app.schemas.common import BlogPagination, CamelModel


class FeaturedImage(BaseModel):
    public_id: Optional[str] = None
    format: Optional[str] = None
    resource_type: str = "image"


class ImageDescriptor(BaseModel):
    """Full media host descriptor, as stored in blogs.featured_image."""

    url: Optional[str] = None
    secure_url: Optional[str] = None
    public_id: str
    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None
    resource_type: Optional[str] = "image"
    created_at: Optional[str] = None


class BlogListItem(BaseModel):
    id: str
    title: str
    published_date: date
    category: Optional[str] = None
    authors: List[str] = Field(default_factory=list)
    featured_image: Optional[FeaturedImage] = None
    comments_count: int = 0
    excerpt: str = Field(default="", description="First 480 characters of the body")
    created_at: datetime


class BlogFilters(CamelModel):
    category: Optional[str] = None
    search: Optional[str] = None
    sort_by: str = "latest"


class BlogListResponse(BaseModel):
    blogs: List[BlogListItem]
    pagination: BlogPagination
    filters: BlogFilters


class BlogDetail(BaseModel):
    id: str
    title: str
    published_date: date
    category: Optional[str] = None
    authors: List[str] = Field(default_factory=list)
    body: str
    featured_image: Optional[FeaturedImage] = None
    comments: List[CommentResponse] = Field(default_factory=list)
    comments_count: int = 0
    created_at: datetime


class CategoriesResponse(BaseModel):
    categories: List[str]


class BlogCreated(CamelModel):
    message: str = "Blog created successfully"
    blog_id: str
    featured_image: Optional[ImageDescriptor] = None


class ImageUploadResponse(BaseModel):
    message: str = "Image uploaded successfully"
    url: Optional[str] = None
    public_id: str
    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None


class BlogUpdate(BaseModel):
    """
    Full replacement of a post's editable fields (PUT semantics, no merge).

    featured_image may be the descriptor object, its JSON text, or null.
    """

    title: str = Field(min_length=1, max_length=255)
    published_date: date
    category: str = Field(min_length=1, max_length=100)
    authors: List[str]
    body: str = Field(min_length=1)
    featured_image: Optional[dict | str] = None
