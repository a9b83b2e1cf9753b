"""
Test suite for ChatMessageCRUD on an in-memory SQLite database.

Tests the storage-level message lifecycle: placeholders, the single
terminal write, history visibility and stale placeholder recovery.

System role: Verification of conversation persistence
"""

import uuid
from datetime import timedelta

import pytest

from classroom_rag.boundary.db.base import utcnow
from classroom_rag.boundary.db.CRUD.chat_message_crud import chat_message_crud
from classroom_rag.core.exceptions import InvalidMessageTransitionError
from classroom_rag.models.chat import MessageStatus


async def add_placeholder(session, group_id, owner_id, age: timedelta = timedelta(0)):
    return await chat_message_crud.create(
        session,
        id=uuid.uuid4(),
        group_id=group_id,
        owner_id=owner_id,
        is_ai=True,
        content="",
        status=MessageStatus.GENERATING,
        created_at=utcnow() - age,
    )


async def reload(session, message_id):
    """Re-read a row after a bulk UPDATE that bypasses the identity map."""
    session.expire_all()
    return await chat_message_crud.get_by_id(session, message_id)


class TestFinalize:
    """Test suite for finalize()."""

    @pytest.mark.asyncio
    async def test_should_move_generating_to_active(self, test_async_db, group_id, requester_id) -> None:
        # Arrange
        message_id = uuid.uuid4()
        await chat_message_crud.create_placeholder(test_async_db, message_id, group_id, requester_id)

        # Act
        updated = await chat_message_crud.finalize(test_async_db, message_id, "Full answer", MessageStatus.ACTIVE)

        # Assert
        row = await reload(test_async_db, message_id)
        assert updated is True
        assert row.status == MessageStatus.ACTIVE
        assert row.content == "Full answer"
        assert row.is_ai is True
        assert row.author_id is None

    @pytest.mark.asyncio
    async def test_terminal_message_should_not_be_rewritten(self, test_async_db, group_id, requester_id) -> None:
        # Arrange
        message_id = uuid.uuid4()
        await chat_message_crud.create_placeholder(test_async_db, message_id, group_id, requester_id)
        await chat_message_crud.finalize(test_async_db, message_id, "Partial", MessageStatus.CANCELLED)

        # Act
        updated = await chat_message_crud.finalize(test_async_db, message_id, "Other", MessageStatus.ACTIVE)

        # Assert
        row = await reload(test_async_db, message_id)
        assert updated is False
        assert row.status == MessageStatus.CANCELLED
        assert row.content == "Partial"

    @pytest.mark.asyncio
    async def test_unknown_message_should_return_false(self, test_async_db) -> None:
        assert await chat_message_crud.finalize(test_async_db, uuid.uuid4(), "x", MessageStatus.ACTIVE) is False

    @pytest.mark.asyncio
    async def test_generating_target_should_raise(self, test_async_db) -> None:
        with pytest.raises(InvalidMessageTransitionError):
            await chat_message_crud.finalize(test_async_db, uuid.uuid4(), "x", MessageStatus.GENERATING)


class TestListHistory:
    """Test suite for list_history()."""

    @pytest.mark.asyncio
    async def test_should_return_active_messages_oldest_first(self, test_async_db, group_id, requester_id) -> None:
        # Arrange
        await chat_message_crud.create_user_message(test_async_db, group_id, requester_id, "Question 1")
        answered = uuid.uuid4()
        await chat_message_crud.create_placeholder(test_async_db, answered, group_id, requester_id)
        await chat_message_crud.finalize(test_async_db, answered, "Answer 1", MessageStatus.ACTIVE)
        await chat_message_crud.create_user_message(test_async_db, group_id, requester_id, "Question 2")
        stopped = uuid.uuid4()
        await chat_message_crud.create_placeholder(test_async_db, stopped, group_id, requester_id)
        await chat_message_crud.finalize(test_async_db, stopped, "Half", MessageStatus.CANCELLED)
        await chat_message_crud.create_user_message(test_async_db, group_id, requester_id, "Question 3")
        await chat_message_crud.create_placeholder(test_async_db, uuid.uuid4(), group_id, requester_id)
        test_async_db.expire_all()

        # Act
        history = await chat_message_crud.list_history(test_async_db, group_id, requester_id)

        # Assert
        assert [m.content for m in history] == ["Question 1", "Answer 1", "Question 2", "Question 3"]

    @pytest.mark.asyncio
    async def test_conversations_should_be_private(self, test_async_db, group_id, requester_id) -> None:
        # Arrange
        await chat_message_crud.create_user_message(test_async_db, group_id, requester_id, "Mine")
        await chat_message_crud.create_user_message(test_async_db, group_id, uuid.uuid4(), "Someone else's")
        await chat_message_crud.create_user_message(test_async_db, uuid.uuid4(), requester_id, "Other group")

        # Act
        history = await chat_message_crud.list_history(test_async_db, group_id, requester_id)

        # Assert
        assert [m.content for m in history] == ["Mine"]

    @pytest.mark.asyncio
    async def test_should_keep_most_recent_messages_within_limit(self, test_async_db, group_id, requester_id) -> None:
        # Arrange
        for index in range(5):
            await chat_message_crud.create(
                test_async_db,
                group_id=group_id,
                owner_id=requester_id,
                author_id=requester_id,
                is_ai=False,
                content=f"m{index}",
                status=MessageStatus.ACTIVE,
                created_at=utcnow() - timedelta(minutes=10 - index),
            )

        # Act
        history = await chat_message_crud.list_history(test_async_db, group_id, requester_id, limit=3)

        # Assert
        assert [m.content for m in history] == ["m2", "m3", "m4"]


class TestCancelStale:
    """Test suite for cancel_stale()."""

    @pytest.mark.asyncio
    async def test_should_cancel_only_old_unprotected_placeholders(
        self, test_async_db, group_id, requester_id
    ) -> None:
        # Arrange
        old = await add_placeholder(test_async_db, group_id, requester_id, age=timedelta(minutes=10))
        live = await add_placeholder(test_async_db, group_id, requester_id, age=timedelta(minutes=10))
        fresh = await add_placeholder(test_async_db, group_id, requester_id)
        old_id, live_id, fresh_id = old.id, live.id, fresh.id
        cutoff = utcnow() - timedelta(minutes=5)

        # Act
        recovered = await chat_message_crud.cancel_stale(test_async_db, cutoff, exclude_ids={live_id})

        # Assert
        assert recovered == 1
        assert (await reload(test_async_db, old_id)).status == MessageStatus.CANCELLED
        assert (await reload(test_async_db, live_id)).status == MessageStatus.GENERATING
        assert (await reload(test_async_db, fresh_id)).status == MessageStatus.GENERATING

    @pytest.mark.asyncio
    async def test_group_filter_should_limit_recovery(self, test_async_db, group_id, requester_id) -> None:
        # Arrange
        await add_placeholder(test_async_db, group_id, requester_id, age=timedelta(minutes=10))
        other = await add_placeholder(test_async_db, uuid.uuid4(), requester_id, age=timedelta(minutes=10))

        # Act
        recovered = await chat_message_crud.cancel_stale(
            test_async_db, utcnow() - timedelta(minutes=5), group_id=group_id
        )

        # Assert
        assert recovered == 1
        assert (await reload(test_async_db, other.id)).status == MessageStatus.GENERATING
