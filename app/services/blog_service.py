"""
Blog API — Blog Service (Post Repository)
===========================================

What:  Listing, detail, create, update and delete of blog posts, plus the
       standalone body-image upload used by the editor.
Why:   Keeps query building, JSON column decoding and the media host
       choreography out of the route handlers.
How:   SQLAlchemy Core/ORM statements on the `blogs` table; images go through
       MediaService (Pillow → Cloudinary).
Who:   Called by app/routes/blogs.py.

Create Flow (POST /api/blog/new):
    ┌───────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │  Check    │───▶│  Validate   │───▶│  Compress &  │───▶│  INSERT  │
    │  fields   │    │  image      │    │  upload      │    │  (flush) │
    └───────────┘    └─────────────┘    └──────────────┘    └──────────┘

    Media failure    → MediaServiceError, nothing written
    INSERT failure   → uploaded image destroyed, DatabaseError

Listing Query:
    SELECT id, title, ..., substr(body, 1, 480) AS excerpt
      FROM blogs
     WHERE category = :category                 -- unless absent or "All"
       AND (title ILIKE :q OR body ILIKE :q)    -- unless search is blank
     ORDER BY <sort>
     LIMIT :limit OFFSET :offset

    The same WHERE clause feeds the COUNT(*) used for pagination.
"""

import logging
import uuid
from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy import delete, distinct, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import (
    BlogAPIError,
    DatabaseError,
    MediaServiceError,
    NotFoundError,
    ValidationError,
)
from app.models.blog import Blog
from app.schemas.blog import (
    BlogCreated,
    BlogDetail,
    BlogFilters,
    BlogListItem,
    BlogListResponse,
    BlogUpdate,
    CategoriesResponse,
    ImageUploadResponse,
)
from app.schemas.common import BlogPagination
from app.services.comment_service import to_comment_response
from app.services.json_columns import (
    decode_image_descriptor,
    normalize_authors,
    normalize_comment_list,
    parse_authors_input,
    public_image_descriptor,
)
from app.services.media_service import media_service
from app.services.pagination import PageWindow

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All"

SORT_ORDERS = {
    "latest": (Blog.published_date.desc(), Blog.created_at.desc()),
    "oldest": (Blog.published_date.asc(), Blog.created_at.asc()),
    "popular": (Blog.comments_count.desc(), Blog.published_date.desc()),
}

REQUIRED_CREATE_FIELDS = ("title", "published_date", "category", "authors", "body")


def featured_public_id(blog_id: str) -> str:
    """Public id (within the featured folder) for a post's featured image."""
    return f"featured-{blog_id}"


class BlogService:
    """
    Business logic for blog posts.

    Error Handling Strategy:
        Own exceptions (ValidationError, NotFoundError, MediaServiceError)
        propagate unchanged. SQLAlchemy failures are logged and wrapped in
        DatabaseError so statement text never reaches the client.
    """

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_blogs(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 5,
        category: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "latest",
    ) -> BlogListResponse:
        conditions = []
        if category and category != ALL_CATEGORIES:
            conditions.append(Blog.category == category)

        term = (search or "").strip()
        if term:
            pattern = f"%{term}%"
            conditions.append(or_(Blog.title.ilike(pattern), Blog.body.ilike(pattern)))

        order_by = SORT_ORDERS.get(sort_by, SORT_ORDERS["latest"])

        try:
            total = (
                await db.execute(select(func.count(Blog.id)).where(*conditions))
            ).scalar() or 0

            window = PageWindow(page=page, limit=limit, total=total)

            query = (
                select(
                    Blog.id,
                    Blog.title,
                    Blog.published_date,
                    Blog.category,
                    Blog.authors,
                    Blog.featured_image,
                    Blog.comments_count,
                    Blog.created_at,
                    func.substr(Blog.body, 1, settings.excerpt_length).label("excerpt"),
                )
                .where(*conditions)
                .order_by(*order_by)
                .limit(window.limit)
                .offset(window.offset)
            )
            rows = (await db.execute(query)).all()
        except SQLAlchemyError as e:
            logger.error("Database error listing blogs: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve blogs. Please try again.",
                context={"error_type": type(e).__name__},
            )

        blogs = [
            BlogListItem(
                id=row.id,
                title=row.title,
                published_date=row.published_date,
                category=row.category,
                authors=normalize_authors(row.authors),
                featured_image=public_image_descriptor(row.featured_image),
                comments_count=row.comments_count or 0,
                excerpt=row.excerpt or "",
                created_at=row.created_at,
            )
            for row in rows
        ]

        return BlogListResponse(
            blogs=blogs,
            pagination=BlogPagination(**window.as_metadata("total_blogs")),
            filters=BlogFilters(category=category, search=search, sort_by=sort_by),
        )

    async def get_blog(self, db: AsyncSession, blog_id: str) -> BlogDetail:
        try:
            blog = (
                await db.execute(select(Blog).where(Blog.id == blog_id))
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching blog %s: %s", blog_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the blog. Please try again.",
                context={"blog_id": blog_id},
            )

        if blog is None:
            raise NotFoundError(resource="blog", resource_id=blog_id)

        return BlogDetail(
            id=blog.id,
            title=blog.title,
            published_date=blog.published_date,
            category=blog.category,
            authors=normalize_authors(blog.authors),
            body=blog.body,
            featured_image=public_image_descriptor(blog.featured_image),
            comments=[to_comment_response(c) for c in normalize_comment_list(blog.comments)],
            comments_count=blog.comments_count or 0,
            created_at=blog.created_at,
        )

    async def get_categories(self, db: AsyncSession) -> CategoriesResponse:
        try:
            result = await db.execute(
                select(distinct(Blog.category))
                .where(Blog.category.is_not(None))
                .order_by(Blog.category.asc())
            )
            categories = [row[0] for row in result.all()]
        except SQLAlchemyError as e:
            logger.error("Database error fetching categories: %s", str(e))
            raise DatabaseError(message="Could not retrieve categories. Please try again.")

        return CategoriesResponse(categories=[ALL_CATEGORIES, *categories])

    # ── Writes ────────────────────────────────────────────────────────────

    def validate_create_fields(
        self,
        title: Optional[str],
        published_date: Optional[str],
        category: Optional[str],
        authors: Optional[str],
        body: Optional[str],
    ) -> Dict[str, Any]:
        """
        Checks the multipart form fields of a new post.

        Returns the cleaned values (published_date as a date, authors as a
        list) or raises ValidationError listing every problem found.
        """
        supplied = {
            "title": title,
            "published_date": published_date,
            "category": category,
            "authors": authors,
            "body": body,
        }
        missing = [name for name in REQUIRED_CREATE_FIELDS if not (supplied[name] or "").strip()]
        if missing:
            raise ValidationError(
                message="Missing required fields",
                errors=[{"field": name, "message": "This field is required"} for name in missing],
            )

        parsed_authors = parse_authors_input(authors)
        if parsed_authors is None:
            raise ValidationError(message="Authors must be a JSON array", field="authors")

        try:
            parsed_date = date.fromisoformat(published_date.strip())
        except ValueError:
            raise ValidationError(
                message="published_date must be an ISO date (YYYY-MM-DD)",
                field="published_date",
            )

        return {
            "title": title.strip(),
            "published_date": parsed_date,
            "category": category.strip(),
            "authors": parsed_authors,
            "body": body,
        }

    async def create_blog(
        self,
        db: AsyncSession,
        title: Optional[str],
        published_date: Optional[str],
        category: Optional[str],
        authors: Optional[str],
        body: Optional[str],
        image_content: Optional[bytes] = None,
        image_content_type: Optional[str] = None,
    ) -> BlogCreated:
        """
        Creates a post, uploading its featured image first when one is given.

        Raises:
            ValidationError: missing/invalid fields or a rejected image
            MediaServiceError: compression or upload failed (no row written)
            DatabaseError: the INSERT failed (uploaded image destroyed)
        """
        fields = self.validate_create_fields(title, published_date, category, authors, body)
        blog_id = str(uuid.uuid4())
        descriptor: Optional[Dict[str, Any]] = None

        if image_content is not None:
            media_service.validate_image(image_content, image_content_type)
            descriptor = await media_service.upload_image(
                image_content,
                folder=settings.featured_image_folder,
                public_id=featured_public_id(blog_id),
            )

        try:
            db.add(Blog(id=blog_id, featured_image=descriptor, comments=[], **fields))
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Error inserting blog %s: %s", blog_id, str(e), exc_info=True)
            if descriptor and descriptor.get("public_id"):
                await self.cleanup_image(descriptor["public_id"])
            raise DatabaseError(
                message="Failed to create blog",
                context={"blog_id": blog_id, "error_type": type(e).__name__},
            )

        logger.info(
            "Blog %s created (featured image: %s)",
            blog_id,
            descriptor["public_id"] if descriptor else "none",
        )
        return BlogCreated(blog_id=blog_id, featured_image=descriptor)

    async def upload_body_image(
        self,
        content: Optional[bytes],
        content_type: Optional[str],
    ) -> ImageUploadResponse:
        if content is None:
            raise ValidationError(message="No file uploaded", field="image")

        media_service.validate_image(content, content_type)
        descriptor = await media_service.upload_image(
            content, folder=settings.body_image_folder
        )
        return ImageUploadResponse(
            url=descriptor.get("secure_url"),
            public_id=descriptor["public_id"],
            width=descriptor.get("width"),
            height=descriptor.get("height"),
            format=descriptor.get("format"),
        )

    async def update_blog(self, db: AsyncSession, blog_id: str, payload: BlogUpdate) -> None:
        """Replaces every editable field; nothing is merged with the stored row."""
        featured_image = payload.featured_image
        if isinstance(featured_image, str):
            featured_image = decode_image_descriptor(featured_image)
            if featured_image is None and payload.featured_image.strip():
                raise ValidationError(
                    message="featured_image must be an image descriptor object",
                    field="featured_image",
                )

        try:
            result = await db.execute(
                update(Blog)
                .where(Blog.id == blog_id)
                .values(
                    title=payload.title,
                    published_date=payload.published_date,
                    category=payload.category,
                    authors=payload.authors,
                    featured_image=featured_image,
                    body=payload.body,
                )
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            logger.error("Database error updating blog %s: %s", blog_id, str(e))
            raise DatabaseError(
                message="Failed to update blog",
                context={"blog_id": blog_id, "error_type": type(e).__name__},
            )

        if result.rowcount == 0:
            raise NotFoundError(resource="blog", resource_id=blog_id)
        logger.info("Blog %s updated", blog_id)

    async def delete_blog(self, db: AsyncSession, blog_id: str) -> Optional[str]:
        """
        Deletes a post.

        Returns:
            The public id of its featured image (for background cleanup), or
            None when the post had no decodable featured image.
        """
        try:
            row = (
                await db.execute(select(Blog.featured_image).where(Blog.id == blog_id))
            ).one_or_none()
            if row is None:
                raise NotFoundError(resource="blog", resource_id=blog_id)

            result = await db.execute(
                delete(Blog)
                .where(Blog.id == blog_id)
                .execution_options(synchronize_session=False)
            )
        except BlogAPIError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting blog %s: %s", blog_id, str(e))
            raise DatabaseError(
                message="Failed to delete blog",
                context={"blog_id": blog_id, "error_type": type(e).__name__},
            )

        if result.rowcount == 0:
            raise NotFoundError(resource="blog", resource_id=blog_id)

        logger.info("Blog %s deleted", blog_id)
        descriptor = decode_image_descriptor(row.featured_image)
        return descriptor.get("public_id") if descriptor else None

    async def cleanup_image(self, public_id: str) -> None:
        """
        Best-effort removal of an image from the media host.

        Runs as a background task after deletes and after failed inserts;
        a failure here must not change the outcome of the request.
        """
        try:
            await media_service.delete_image(public_id)
        except MediaServiceError as e:
            logger.warning("Could not remove image %s: %s", public_id, e.detail or e.message)


blog_service = BlogService()
