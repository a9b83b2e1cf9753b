"""
Test suite for DocumentCRUD on an in-memory SQLite database.

Tests processing status transitions and recent-document lookup.

System role: Verification of document persistence layer
"""

import uuid
from datetime import timedelta

import pytest

from classroom_rag.boundary.db.base import utcnow
from classroom_rag.boundary.db.CRUD.document_crud import document_crud
from classroom_rag.boundary.db.CRUD.group_crud import group_crud
from classroom_rag.boundary.db.models import DocumentStatus


@pytest.fixture
async def group(test_async_db):
    return await group_crud.create(test_async_db, code="CS 131", name="Compilers")


async def add_document(session, group, filename, content="Some extracted text", minutes_ago=0, **fields):
    return await document_crud.create(
        session,
        group_id=group.id,
        filename=filename,
        content=content,
        uploaded_at=utcnow() - timedelta(minutes=minutes_ago),
        **fields,
    )


class TestStatusTransitions:
    """Test suite for status update helpers."""

    @pytest.mark.asyncio
    async def test_new_document_should_be_pending(self, test_async_db, group) -> None:
        document = await add_document(test_async_db, group, "a.pdf")

        assert document.processing_status == DocumentStatus.PENDING
        assert document.passage_count == 0
        assert document.summary_generated is False

    @pytest.mark.asyncio
    async def test_mark_processed_should_record_count_and_clear_error(self, test_async_db, group) -> None:
        # Arrange
        document = await add_document(test_async_db, group, "a.pdf", last_error="previous failure")

        # Act
        updated = await document_crud.mark_processed(test_async_db, document.id, passage_count=7)

        # Assert
        assert updated.processing_status == DocumentStatus.PROCESSED
        assert updated.passage_count == 7
        assert updated.processed_at is not None
        assert updated.last_error is None

    @pytest.mark.asyncio
    async def test_mark_failed_should_truncate_error(self, test_async_db, group) -> None:
        # Arrange
        document = await add_document(test_async_db, group, "a.pdf")

        # Act
        updated = await document_crud.mark_failed(test_async_db, document.id, "x" * 900)

        # Assert
        assert updated.processing_status == DocumentStatus.FAILED
        assert len(updated.last_error) == 500

    @pytest.mark.asyncio
    async def test_missing_document_should_return_none(self, test_async_db) -> None:
        assert await document_crud.mark_summary_generated(test_async_db, uuid.uuid4()) is None


class TestQueries:
    """Test suite for read helpers."""

    @pytest.mark.asyncio
    async def test_recent_with_content_should_skip_empty_and_order_newest_first(self, test_async_db, group) -> None:
        # Arrange
        await add_document(test_async_db, group, "old.pdf", minutes_ago=30)
        await add_document(test_async_db, group, "newest.pdf", minutes_ago=1)
        await add_document(test_async_db, group, "empty.pdf", content=None, minutes_ago=0)
        await add_document(test_async_db, group, "middle.pdf", minutes_ago=10)

        # Act
        documents = await document_crud.get_recent_with_content(test_async_db, group.id, limit=2)

        # Assert
        assert [d.filename for d in documents] == ["newest.pdf", "middle.pdf"]

    @pytest.mark.asyncio
    async def test_count_processed(self, test_async_db, group) -> None:
        # Arrange
        first = await add_document(test_async_db, group, "a.pdf")
        await add_document(test_async_db, group, "b.pdf")
        await document_crud.mark_processed(test_async_db, first.id, passage_count=3)

        # Act & Assert
        assert await document_crud.count_processed(test_async_db, group.id) == 1

    @pytest.mark.asyncio
    async def test_group_display_name(self, test_async_db, group) -> None:
        untitled = await group_crud.create(test_async_db, name="Reading club")

        assert group.display_name == "CS 131 - Compilers"
        assert untitled.display_name == "Reading club"
