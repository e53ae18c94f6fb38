"""
Blog API — Blog Service Tests
===============================

What:  Post listing, detail, create/update/delete against in-memory SQLite,
       with the media service mocked at the module level.

What we test:
    ✅ Authors keep their order through create and read
    ✅ Create without an image stores featured_image = null
    ✅ Create with an image exposes only public_id / format / resource_type
    ✅ A media failure aborts the create before any row exists
    ✅ Listing filters (category, "All", search), sort orders, excerpt
    ✅ Update replaces fields; delete hands back the image to clean up
"""

from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import func, select, text

from app.exceptions import MediaServiceError, NotFoundError, ValidationError
from app.models.blog import Blog
from app.schemas.blog import BlogUpdate
from app.services.blog_service import BlogService

DESCRIPTOR = {
    "url": "http://res.cloudinary.com/demo/image/upload/blogs/featured/featured-x.jpg",
    "secure_url": "https://res.cloudinary.com/demo/image/upload/blogs/featured/featured-x.jpg",
    "public_id": "blogs/featured/featured-x",
    "width": 1200,
    "height": 630,
    "format": "jpg",
    "resource_type": "image",
    "created_at": "2024-05-01T09:30:00Z",
}


def form(**overrides):
    values = {
        "title": "Hello",
        "published_date": "2024-05-01",
        "category": "Tech",
        "authors": '["Zed", "Amy"]',
        "body": "Some body text",
    }
    values.update(overrides)
    return values


async def count_blogs(session) -> int:
    return (await session.execute(select(func.count(Blog.id)))).scalar()


class TestCreateBlog:

    def setup_method(self):
        self.service = BlogService()

    @pytest.mark.asyncio
    async def test_create_without_image(self, db_session):
        created = await self.service.create_blog(db_session, **form())

        assert created.featured_image is None
        detail = await self.service.get_blog(db_session, created.blog_id)
        assert detail.featured_image is None
        assert detail.authors == ["Zed", "Amy"]
        assert detail.published_date == date(2024, 5, 1)
        assert detail.comments == [] and detail.comments_count == 0

    @pytest.mark.asyncio
    async def test_create_with_image_exposes_public_fields(self, db_session):
        with patch("app.services.blog_service.media_service") as mock_media:
            mock_media.validate_image = MagicMock()
            mock_media.upload_image = AsyncMock(return_value=DESCRIPTOR)

            created = await self.service.create_blog(
                db_session, **form(), image_content=b"img", image_content_type="image/png"
            )

            _, kwargs = mock_media.upload_image.call_args
            assert kwargs["folder"] == "blogs/featured"
            assert kwargs["public_id"] == f"featured-{created.blog_id}"

        assert created.featured_image.secure_url == DESCRIPTOR["secure_url"]
        detail = await self.service.get_blog(db_session, created.blog_id)
        assert detail.featured_image.model_dump() == {
            "public_id": "blogs/featured/featured-x",
            "format": "jpg",
            "resource_type": "image",
        }

    @pytest.mark.asyncio
    async def test_media_failure_writes_no_row(self, db_session):
        with patch("app.services.blog_service.media_service") as mock_media:
            mock_media.validate_image = MagicMock()
            mock_media.upload_image = AsyncMock(
                side_effect=MediaServiceError(detail="Invalid cloud_name demo")
            )

            with pytest.raises(MediaServiceError) as exc_info:
                await self.service.create_blog(
                    db_session, **form(), image_content=b"img", image_content_type="image/png"
                )

        assert exc_info.value.detail == "Invalid cloud_name demo"
        assert await count_blogs(db_session) == 0

    @pytest.mark.asyncio
    async def test_rejected_image_writes_no_row(self, db_session):
        with patch("app.services.blog_service.media_service") as mock_media:
            mock_media.validate_image = MagicMock(side_effect=ValidationError(message="bad", field="image"))
            mock_media.upload_image = AsyncMock()

            with pytest.raises(ValidationError):
                await self.service.create_blog(
                    db_session, **form(), image_content=b"gif", image_content_type="image/gif"
                )

            mock_media.upload_image.assert_not_awaited()
        assert await count_blogs(db_session) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["title", "published_date", "category", "authors", "body"])
    async def test_missing_field_rejected(self, db_session, missing):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_blog(db_session, **form(**{missing: None}))

        assert [e["field"] for e in exc_info.value.errors] == [missing]

    @pytest.mark.asyncio
    async def test_authors_must_be_json_list(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_blog(db_session, **form(authors="Jane Doe"))
        assert exc_info.value.field == "authors"

    @pytest.mark.asyncio
    async def test_deeply_nested_authors_is_validation_error(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_blog(db_session, **form(authors="[" * 100000))
        assert exc_info.value.field == "authors"
        assert await count_blogs(db_session) == 0

    @pytest.mark.asyncio
    async def test_published_date_must_be_iso(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_blog(db_session, **form(published_date="May 1st"))
        assert exc_info.value.field == "published_date"


class TestReadBlogs:

    def setup_method(self):
        self.service = BlogService()

    @pytest.mark.asyncio
    async def test_get_unknown_is_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_blog(db_session, "missing-id")

    @pytest.mark.asyncio
    async def test_legacy_plain_text_author(self, database, db_session, create_blog_row):
        blog_id = await create_blog_row()
        async with database.session_factory() as session:
            await session.execute(
                text("UPDATE blogs SET authors = :raw WHERE id = :id"),
                {"raw": "Jane Doe", "id": blog_id},
            )
            await session.commit()

        detail = await self.service.get_blog(db_session, blog_id)
        assert detail.authors == ["Jane Doe"]

    @pytest.mark.asyncio
    async def test_list_filters_and_excerpt(self, db_session, create_blog_row):
        await create_blog_row(title="Python tips", category="Tech", body="x" * 600)
        await create_blog_row(title="Sourdough", category="Food", body="Bread with python-like patience")
        await create_blog_row(title="Gardening", category="Life", body="Tomatoes")

        everything = await self.service.list_blogs(db_session, category="All", limit=10)
        assert everything.pagination.total_blogs == 3

        tech = await self.service.list_blogs(db_session, category="Tech")
        assert [b.title for b in tech.blogs] == ["Python tips"]
        assert len(tech.blogs[0].excerpt) == 480

        search = await self.service.list_blogs(db_session, search="  PYTHON ", limit=10)
        assert sorted(b.title for b in search.blogs) == ["Python tips", "Sourdough"]
        assert search.pagination.total_blogs == 2

        both = await self.service.list_blogs(db_session, category="Food", search="python")
        assert [b.title for b in both.blogs] == ["Sourdough"]

    @pytest.mark.asyncio
    async def test_sort_orders(self, db_session, create_blog_row):
        await create_blog_row(title="old", published_date=date(2023, 1, 1), comments_count=5)
        await create_blog_row(title="new", published_date=date(2024, 6, 1), comments_count=0)
        await create_blog_row(title="mid", published_date=date(2024, 1, 1), comments_count=9)

        async def titles(sort_by):
            result = await self.service.list_blogs(db_session, sort_by=sort_by, limit=10)
            return [b.title for b in result.blogs]

        assert await titles("latest") == ["new", "mid", "old"]
        assert await titles("oldest") == ["old", "mid", "new"]
        assert await titles("popular") == ["mid", "old", "new"]
        assert await titles("whatever") == ["new", "mid", "old"]

    @pytest.mark.asyncio
    async def test_list_pagination(self, db_session, create_blog_row):
        for day in range(1, 8):
            await create_blog_row(title=f"post {day}", published_date=date(2024, 1, day))

        page_two = await self.service.list_blogs(db_session, page=2, limit=5)

        assert [b.title for b in page_two.blogs] == ["post 2", "post 1"]
        assert page_two.pagination.total_pages == 2
        assert page_two.pagination.has_next_page is False
        assert page_two.pagination.has_prev_page is True
        assert page_two.filters.sort_by == "latest"

    @pytest.mark.asyncio
    async def test_categories(self, db_session, create_blog_row):
        await create_blog_row(category="Tech")
        await create_blog_row(category="Food")
        await create_blog_row(category="Tech")
        await create_blog_row(category=None)

        result = await self.service.get_categories(db_session)

        assert result.categories == ["All", "Food", "Tech"]


class TestUpdateAndDelete:

    def setup_method(self):
        self.service = BlogService()

    @pytest.mark.asyncio
    async def test_update_replaces_fields(self, db_session, create_blog_row):
        blog_id = await create_blog_row(featured_image=DESCRIPTOR)

        await self.service.update_blog(
            db_session,
            blog_id,
            BlogUpdate(
                title="Renamed",
                published_date=date(2024, 7, 1),
                category="Life",
                authors=["Amy"],
                body="New body",
                featured_image=None,
            ),
        )

        detail = await self.service.get_blog(db_session, blog_id)
        assert detail.title == "Renamed"
        assert detail.authors == ["Amy"]
        assert detail.featured_image is None

    @pytest.mark.asyncio
    async def test_update_unknown_is_not_found(self, db_session):
        payload = BlogUpdate(
            title="t", published_date=date(2024, 1, 1), category="c", authors=[], body="b"
        )
        with pytest.raises(NotFoundError):
            await self.service.update_blog(db_session, "missing-id", payload)

    @pytest.mark.asyncio
    async def test_delete_returns_featured_public_id(self, db_session, create_blog_row):
        blog_id = await create_blog_row(featured_image=DESCRIPTOR)

        public_id = await self.service.delete_blog(db_session, blog_id)

        assert public_id == DESCRIPTOR["public_id"]
        assert await count_blogs(db_session) == 0

    @pytest.mark.asyncio
    async def test_delete_unknown_is_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.delete_blog(db_session, "missing-id")

    @pytest.mark.asyncio
    async def test_cleanup_failure_is_swallowed(self):
        with patch("app.services.blog_service.media_service") as mock_media:
            mock_media.delete_image = AsyncMock(side_effect=MediaServiceError(detail="gone"))
            await self.service.cleanup_image("blogs/featured/featured-x")
            mock_media.delete_image.assert_awaited_once_with("blogs/featured/featured-x")


class TestUploadBodyImage:

    @pytest.mark.asyncio
    async def test_no_file_is_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            await BlogService().upload_body_image(None, None)
        assert exc_info.value.message == "No file uploaded"

    @pytest.mark.asyncio
    async def test_returns_secure_url(self):
        with patch("app.services.blog_service.media_service") as mock_media:
            mock_media.validate_image = MagicMock()
            mock_media.upload_image = AsyncMock(return_value=DESCRIPTOR)

            result = await BlogService().upload_body_image(b"img", "image/jpeg")

            _, kwargs = mock_media.upload_image.call_args
            assert kwargs["folder"] == "blogs/content"

        assert result.url == DESCRIPTOR["secure_url"]
        assert (result.width, result.height, result.format) == (1200, 630, "jpg")
