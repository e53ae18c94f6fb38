"""
Blog API — Submission Intake Tests
====================================

What:  SubmissionCreate field rules and SubmissionService persistence.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select

from app.exceptions import NotFoundError, ValidationError
from app.models.submission import BlogSubmission
from app.schemas.submission import SubmissionCreate
from app.services.submission_service import SubmissionService

DOC_LINK = "https://docs.google.com/document/d/1AbCdEf/edit"


def submission(**overrides) -> SubmissionCreate:
    data = {
        "name": "Ada Lovelace",
        "email": "Ada@Example.COM",
        "blog_title": "Notes on the Analytical Engine",
        "category": "History",
        "blog_content": DOC_LINK,
    }
    data.update(overrides)
    return SubmissionCreate(**data)


class TestSubmissionSchema:

    def test_google_docs_and_drive_links_accepted(self):
        assert submission().blog_content == DOC_LINK
        drive = "drive.google.com/file/d/123/view"
        assert submission(blog_content=drive).blog_content == drive

    def test_other_links_rejected_naming_blog_content(self):
        with pytest.raises(PydanticValidationError) as exc_info:
            submission(blog_content="https://example.com/my-post")

        locs = [err["loc"][-1] for err in exc_info.value.errors()]
        assert locs == ["blog_content"]

    def test_email_lowercased_and_text_escaped(self):
        result = submission(name="  <b>Ada</b>  ", category="Tips & Tricks")

        assert result.email == "ada@example.com"
        assert result.name == "&lt;b&gt;Ada&lt;/b&gt;"
        assert result.category == "Tips &amp; Tricks"

    def test_length_rules(self):
        with pytest.raises(PydanticValidationError) as exc_info:
            submission(name="A", blog_title="Hi")

        fields = {err["loc"][-1] for err in exc_info.value.errors()}
        assert fields == {"name", "blog_title"}


class TestSubmissionService:

    def setup_method(self):
        self.service = SubmissionService()

    @pytest.mark.asyncio
    async def test_create_stores_received_status(self, db_session):
        created = await self.service.create_submission(db_session, submission())

        stored = await self.service.get_submission(db_session, created.submission_id)
        assert stored.status == "Received"
        assert stored.email == "ada@example.com"

    @pytest.mark.asyncio
    async def test_list_newest_first_with_status_filter(self, db_session):
        first = await self.service.create_submission(db_session, submission(blog_title="First post"))
        second = await self.service.create_submission(db_session, submission(blog_title="Second post"))
        await self.service.update_status(db_session, first.submission_id, "Accepted")

        accepted = await self.service.list_submissions(db_session, status="Accepted")
        assert [s.id for s in accepted.submissions] == [first.submission_id]

        # Unknown filter values are ignored
        everything = await self.service.list_submissions(db_session, status="Bogus")
        assert everything.pagination.total_submissions == 2
        assert {s.id for s in everything.submissions} == {first.submission_id, second.submission_id}

    @pytest.mark.asyncio
    async def test_invalid_status_rejected_and_unchanged(self, db_session):
        created = await self.service.create_submission(db_session, submission())

        with pytest.raises(ValidationError) as exc_info:
            await self.service.update_status(db_session, created.submission_id, "Draft")

        assert exc_info.value.field == "status"
        status = (
            await db_session.execute(
                select(BlogSubmission.status).where(BlogSubmission.id == created.submission_id)
            )
        ).scalar_one()
        assert status == "Received"

    @pytest.mark.asyncio
    async def test_any_transition_between_statuses_allowed(self, db_session):
        created = await self.service.create_submission(db_session, submission())

        assert await self.service.update_status(db_session, created.submission_id, "Published") == "Published"
        assert await self.service.update_status(db_session, created.submission_id, "Received") == "Received"

    @pytest.mark.asyncio
    async def test_unknown_id_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_submission(db_session, "missing")
        with pytest.raises(NotFoundError):
            await self.service.update_status(db_session, "missing", "Accepted")
        with pytest.raises(NotFoundError):
            await self.service.delete_submission(db_session, "missing")

    @pytest.mark.asyncio
    async def test_delete(self, db_session):
        created = await self.service.create_submission(db_session, submission())

        await self.service.delete_submission(db_session, created.submission_id)

        with pytest.raises(NotFoundError):
            await self.service.get_submission(db_session, created.submission_id)
