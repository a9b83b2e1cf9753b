"""
Chat message lifecycle service.

Owns every write to chat messages made while answering: the user's question
and the assistant placeholder at the start, the single terminal write at the
end, and recovery of placeholders abandoned by a crash or lost connection.
Writes are best-effort: database errors are logged and reported as False so
an answer in flight is never aborted by persistence.

Dependencies: sqlalchemy, classroom_rag.boundary.db, classroom_rag.core
System role: Message state machine persistence
"""

import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from classroom_rag.boundary.db.base import utcnow
from classroom_rag.boundary.db.CRUD.chat_message_crud import chat_message_crud
from classroom_rag.configs import get_settings
from classroom_rag.core.exceptions import PersistenceError
from classroom_rag.core.generation_sessions import GenerationSessionManager
from classroom_rag.models.chat import ChatHistoryResponse, ChatMessageResponse, MessageStatus
from classroom_rag.observability import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)


class MessageLifecycleService:
    """
    Persistence for the generating -> active | cancelled state machine.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        session_manager: GenerationSessionManager,
        stale_after_seconds: int | None = None,
    ) -> None:
        """
        Initialize lifecycle service.

        Args:
            session_factory: Factory for short-lived database sessions
            session_manager: Registry of live generations (excluded from recovery)
            stale_after_seconds: Age after which a generating message is abandoned
        """
        self._session_factory = session_factory
        self._session_manager = session_manager
        self.stale_after = timedelta(
            seconds=stale_after_seconds or get_settings().generation.stale_after_seconds
        )

    async def start_turn(
        self,
        message_id: UUID,
        group_id: UUID,
        requester_id: UUID,
        question: str,
    ) -> bool:
        """
        Store the question and the generating placeholder in one transaction.

        Returns:
            True if both rows were written
        """
        try:
            async with self._session_factory() as session:
                await chat_message_crud.create_user_message(session, group_id, requester_id, question)
                await chat_message_crud.create_placeholder(session, message_id, group_id, requester_id)
                await session.commit()
        except SQLAlchemyError as e:
            self._log_failure("start_turn", e, message_id=message_id, group_id=group_id)
            return False
        return True

    async def finalize(self, message_id: UUID, content: str, status: MessageStatus) -> bool:
        """
        Write the terminal state of an assistant message.

        Args:
            message_id: Assistant message UUID
            content: Final or partial text
            status: ACTIVE or CANCELLED

        Returns:
            True if the message moved from generating to `status`
        """
        try:
            async with self._session_factory() as session:
                updated = await chat_message_crud.finalize(session, message_id, content, status)
                await session.commit()
        except SQLAlchemyError as e:
            self._log_failure("finalize", e, message_id=message_id, status=status.value)
            return False

        if not updated:
            log_with_context(
                logger,
                logging.WARNING,
                f"{__name__}:finalize - Message was not generating, left unchanged",
                message_id=message_id,
                status=status.value,
            )
        return updated

    async def recover_stale(self, group_id: UUID | None = None) -> int:
        """
        Cancel generating messages older than the staleness threshold that
        have no live generation session.

        Returns:
            Number of recovered messages (0 if the update failed)
        """
        cutoff = utcnow() - self.stale_after
        try:
            async with self._session_factory() as session:
                recovered = await chat_message_crud.cancel_stale(
                    session,
                    older_than=cutoff,
                    exclude_ids=self._session_manager.active_message_ids(),
                    group_id=group_id,
                )
                await session.commit()
        except SQLAlchemyError as e:
            self._log_failure("recover_stale", e, group_id=group_id)
            return 0

        if recovered:
            log_with_context(
                logger,
                logging.INFO,
                f"{__name__}:recover_stale - Cancelled abandoned generating messages",
                group_id=group_id,
                recovered=recovered,
            )
        return recovered

    async def history(self, group_id: UUID, owner_id: UUID) -> ChatHistoryResponse:
        """
        Visible messages of a private conversation, oldest first.

        Runs stale recovery for the group first so a reloaded conversation
        never shows a message stuck in generating.

        Raises:
            PersistenceError: If the history cannot be read
        """
        recovered = await self.recover_stale(group_id)
        try:
            async with self._session_factory() as session:
                rows = await chat_message_crud.list_history(session, group_id, owner_id)
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to load chat history",
                {"group_id": str(group_id), "error": str(e)},
            ) from e

        messages = [ChatMessageResponse.model_validate(row) for row in rows]
        return ChatHistoryResponse(messages=messages, total=len(messages), recovered=recovered)

    def _log_failure(self, operation: str, exc: SQLAlchemyError, **context) -> None:
        log_exception_with_context(logger, f"{__name__}:{operation} - Persistence failed", exc, **context)
