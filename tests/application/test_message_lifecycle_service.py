"""
Test suite for MessageLifecycleService.

Runs against the in-memory database: turn start, single terminal write,
stale placeholder recovery and history reads.

System role: Verification of message state persistence
"""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from classroom_rag.application.services.message_lifecycle_service import MessageLifecycleService
from classroom_rag.boundary.db.base import utcnow
from classroom_rag.boundary.db.CRUD.chat_message_crud import chat_message_crud
from classroom_rag.core.exceptions import PersistenceError
from classroom_rag.core.generation_sessions import GenerationSessionManager
from classroom_rag.models.chat import MessageStatus


class UnavailableDatabase:
    """Session factory whose sessions fail on entry."""

    def __call__(self):
        return self

    async def __aenter__(self):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    async def __aexit__(self, *exc_info):
        return False


@pytest.fixture
def session_manager() -> GenerationSessionManager:
    return GenerationSessionManager()


@pytest.fixture
def lifecycle(test_session_factory, session_manager) -> MessageLifecycleService:
    return MessageLifecycleService(test_session_factory, session_manager, stale_after_seconds=60)


async def add_stale_placeholder(factory, group_id, owner_id) -> uuid.UUID:
    async with factory() as session:
        row = await chat_message_crud.create(
            session,
            group_id=group_id,
            owner_id=owner_id,
            is_ai=True,
            content="Half an ans",
            status=MessageStatus.GENERATING,
            created_at=utcnow() - timedelta(minutes=10),
        )
        await session.commit()
        return row.id


class TestTurn:
    """Test suite for start_turn() and finalize()."""

    @pytest.mark.asyncio
    async def test_generating_placeholder_should_be_hidden_until_final(
        self, lifecycle, group_id, requester_id
    ) -> None:
        # Arrange
        message_id = uuid.uuid4()

        # Act
        started = await lifecycle.start_turn(message_id, group_id, requester_id, "What is an NFA?")
        during = await lifecycle.history(group_id, requester_id)
        finalized = await lifecycle.finalize(message_id, "A nondeterministic automaton.", MessageStatus.ACTIVE)
        after = await lifecycle.history(group_id, requester_id)

        # Assert
        assert started is True
        assert [m.content for m in during.messages] == ["What is an NFA?"]
        assert finalized is True
        assert [(m.is_ai, m.content) for m in after.messages] == [
            (False, "What is an NFA?"),
            (True, "A nondeterministic automaton."),
        ]
        assert after.messages[0].author_id == requester_id
        assert after.total == 2

    @pytest.mark.asyncio
    async def test_finalize_should_happen_once(self, lifecycle, group_id, requester_id) -> None:
        # Arrange
        message_id = uuid.uuid4()
        await lifecycle.start_turn(message_id, group_id, requester_id, "Question")
        await lifecycle.finalize(message_id, "Partial", MessageStatus.CANCELLED)

        # Act
        second = await lifecycle.finalize(message_id, "Something else", MessageStatus.ACTIVE)

        # Assert
        assert second is False
        history = await lifecycle.history(group_id, requester_id)
        assert [m.content for m in history.messages] == ["Question"]

    @pytest.mark.asyncio
    async def test_database_failure_should_be_reported_not_raised(self, session_manager) -> None:
        # Arrange
        lifecycle = MessageLifecycleService(UnavailableDatabase(), session_manager, stale_after_seconds=60)

        # Act
        started = await lifecycle.start_turn(uuid.uuid4(), uuid.uuid4(), uuid.uuid4(), "Question")
        finalized = await lifecycle.finalize(uuid.uuid4(), "x", MessageStatus.ACTIVE)
        recovered = await lifecycle.recover_stale()

        # Assert
        assert (started, finalized, recovered) == (False, False, 0)


class TestRecovery:
    """Test suite for recover_stale() and history()."""

    @pytest.mark.asyncio
    async def test_should_cancel_abandoned_placeholders_but_not_live_ones(
        self, lifecycle, session_manager, test_session_factory, group_id, requester_id
    ) -> None:
        # Arrange
        abandoned = await add_stale_placeholder(test_session_factory, group_id, requester_id)
        live = await add_stale_placeholder(test_session_factory, group_id, uuid.uuid4())
        session_manager.register(live, group_id, uuid.uuid4())

        # Act
        recovered = await lifecycle.recover_stale()

        # Assert
        assert recovered == 1
        async with test_session_factory() as session:
            assert (await chat_message_crud.get_by_id(session, abandoned)).status == MessageStatus.CANCELLED
            assert (await chat_message_crud.get_by_id(session, live)).status == MessageStatus.GENERATING

    @pytest.mark.asyncio
    async def test_history_should_recover_group_before_reading(
        self, lifecycle, test_session_factory, group_id, requester_id
    ) -> None:
        # Arrange
        await add_stale_placeholder(test_session_factory, group_id, requester_id)

        # Act
        history = await lifecycle.history(group_id, requester_id)

        # Assert
        assert history.recovered == 1
        assert history.messages == []

    @pytest.mark.asyncio
    async def test_history_read_failure_should_raise(self, session_manager, group_id, requester_id) -> None:
        lifecycle = MessageLifecycleService(UnavailableDatabase(), session_manager, stale_after_seconds=60)

        with pytest.raises(PersistenceError):
            await lifecycle.history(group_id, requester_id)
