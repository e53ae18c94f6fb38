"""
Blog API — Blog Post Route Handlers
=====================================

What:  /api/blog listing, detail, categories, create, image upload, update
       and delete.
How:   Thin handlers: pull values out of the query string, form or JSON
       body, delegate to BlogService, pick the status code.

Route order matters: `/categories`, `/new` and `/upload-image` are declared
before `/{blog_id}` so they are not captured as ids. The submission router
(/api/blog/submission) is included ahead of this router in main.py for the
same reason.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.exceptions import ValidationError
from app.schemas.blog import (
    BlogCreated,
    BlogDetail,
    BlogListResponse,
    BlogUpdate,
    CategoriesResponse,
    ImageUploadResponse,
)
from app.schemas.common import ErrorResponse, MessageResponse
from app.services.blog_service import blog_service
from app.services.pagination import coerce_query_int

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/blog", tags=["Blogs"])


def upload_too_large(size: int) -> ValidationError:
    max_mb = settings.max_upload_size / (1024 * 1024)
    return ValidationError(
        message=f"File too large. Maximum size is {max_mb:.0f}MB.",
        field="image",
        context={"max_size": settings.max_upload_size, "actual_size": size},
    )


async def read_upload(upload: Optional[UploadFile]) -> Optional[bytes]:
    """
    Reads an optional multipart file; an empty, unnamed part counts as absent.

    At most max_upload_size + 1 bytes are read, so an oversized file is
    rejected without being loaded into memory.
    """
    if upload is None:
        return None
    try:
        if upload.size is not None and upload.size > settings.max_upload_size:
            raise upload_too_large(upload.size)
        content = await upload.read(settings.max_upload_size + 1)
    finally:
        await upload.close()
    if len(content) > settings.max_upload_size:
        raise upload_too_large(len(content))
    if not upload.filename and not content:
        return None
    return content


@router.get(
    "",
    response_model=BlogListResponse,
    summary="List blog posts",
    description=(
        "Paginated listing with optional category filter (\"All\" means no filter), "
        "case-insensitive search over title and body, and sort order "
        "latest | oldest | popular."
    ),
)
async def list_blogs(
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    sort_by: str = Query(default="latest", alias="sortBy"),
    db: AsyncSession = Depends(get_db_session),
) -> BlogListResponse:
    return await blog_service.list_blogs(
        db=db,
        page=coerce_query_int(page, 1),
        limit=coerce_query_int(limit, 5, settings.max_page_size),
        category=category,
        search=search,
        sort_by=sort_by,
    )


@router.get("/categories", response_model=CategoriesResponse, summary="List categories")
async def get_categories(db: AsyncSession = Depends(get_db_session)) -> CategoriesResponse:
    return await blog_service.get_categories(db)


@router.post(
    "/new",
    status_code=201,
    response_model=BlogCreated,
    responses={
        400: {"description": "Missing or invalid fields, or rejected image", "model": ErrorResponse},
        500: {"description": "Image upload or database failure", "model": ErrorResponse},
    },
    summary="Create a blog post",
)
async def create_blog(
    title: Optional[str] = Form(default=None),
    published_date: Optional[str] = Form(default=None),
    category: Optional[str] = Form(default=None),
    authors: Optional[str] = Form(default=None, description="JSON array of author names"),
    body: Optional[str] = Form(default=None),
    featured_image: Optional[UploadFile] = File(
        default=None,
        description="JPEG, PNG or WebP, max 2MB",
    ),
    db: AsyncSession = Depends(get_db_session),
) -> BlogCreated:
    image_content = await read_upload(featured_image)
    return await blog_service.create_blog(
        db=db,
        title=title,
        published_date=published_date,
        category=category,
        authors=authors,
        body=body,
        image_content=image_content,
        image_content_type=featured_image.content_type if image_content is not None else None,
    )


@router.post(
    "/upload-image",
    response_model=ImageUploadResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Upload an image for use inside a post body",
)
async def upload_image(image: Optional[UploadFile] = File(default=None)) -> ImageUploadResponse:
    content = await read_upload(image)
    return await blog_service.upload_body_image(
        content=content,
        content_type=image.content_type if content is not None else None,
    )


@router.get(
    "/{blog_id}",
    response_model=BlogDetail,
    responses={404: {"model": ErrorResponse}},
    summary="Get a blog post with its comments",
)
async def get_blog(blog_id: str, db: AsyncSession = Depends(get_db_session)) -> BlogDetail:
    return await blog_service.get_blog(db, blog_id)


@router.put(
    "/{blog_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Replace a blog post's editable fields",
)
async def update_blog(
    blog_id: str,
    payload: BlogUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await blog_service.update_blog(db, blog_id, payload)
    return MessageResponse(message="Blog updated successfully")


@router.delete(
    "/{blog_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a blog post",
)
async def delete_blog(
    blog_id: str,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    public_id = await blog_service.delete_blog(db, blog_id)
    if public_id:
        # Runs after the response has been sent
        background_tasks.add_task(blog_service.cleanup_image, public_id)
    return MessageResponse(message="Blog deleted successfully")
