"""
Chat message CRUD operations.

Implements the message lifecycle at the storage level: user messages are
written active, assistant messages start as `generating` placeholders and
are finalized exactly once. Every finalizing write is guarded by
`status = 'generating'` so a terminal message is never rewritten.

Dependencies: sqlalchemy, classroom_rag.boundary.db.models
System role: Conversation persistence
"""

from datetime import datetime
from typing import Iterable, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_rag.boundary.db.base import utcnow
from classroom_rag.boundary.db.CRUD.base_crud import BaseCRUD
from classroom_rag.boundary.db.models.chat_message_model import ChatMessageModel
from classroom_rag.core.exceptions import InvalidMessageTransitionError
from classroom_rag.models.chat import MessageStatus

HISTORY_LIMIT = 100


class ChatMessageCRUD(BaseCRUD[ChatMessageModel]):
    """
    CRUD operations for ChatMessageModel.

    Conversations are private: every read is scoped by (group_id, owner_id).
    """

    def __init__(self) -> None:
        super().__init__(ChatMessageModel)

    async def create_user_message(
        self,
        session: AsyncSession,
        group_id: UUID,
        owner_id: UUID,
        content: str,
    ) -> ChatMessageModel:
        """Store the requester's question as an active message they authored."""
        return await self.create(
            session,
            group_id=group_id,
            owner_id=owner_id,
            author_id=owner_id,
            is_ai=False,
            content=content,
            status=MessageStatus.ACTIVE,
        )

    async def create_placeholder(
        self,
        session: AsyncSession,
        message_id: UUID,
        group_id: UUID,
        owner_id: UUID,
    ) -> ChatMessageModel:
        """
        Insert the assistant message in `generating` state with empty content.

        Args:
            session: Async database session
            message_id: Id already handed to the generation session registry
            group_id: Group UUID
            owner_id: Requester the conversation belongs to

        Returns:
            The placeholder row
        """
        return await self.create(
            session,
            id=message_id,
            group_id=group_id,
            owner_id=owner_id,
            author_id=None,
            is_ai=True,
            content="",
            status=MessageStatus.GENERATING,
        )

    async def finalize(
        self,
        session: AsyncSession,
        message_id: UUID,
        content: str,
        status: MessageStatus,
    ) -> bool:
        """
        Move a generating message to a terminal state with its final content.

        Args:
            session: Async database session
            message_id: Assistant message UUID
            content: Final text (full answer, or the partial prefix on cancel)
            status: ACTIVE or CANCELLED

        Returns:
            True if the row was generating and is now terminal, False if it
            was missing or already terminal

        Raises:
            InvalidMessageTransitionError: If `status` is not terminal
        """
        if not MessageStatus.GENERATING.can_transition_to(status):
            raise InvalidMessageTransitionError(MessageStatus.GENERATING.value, status.value)

        stmt = (
            update(ChatMessageModel)
            .where(
                ChatMessageModel.id == message_id,
                ChatMessageModel.status == MessageStatus.GENERATING,
            )
            .values(content=content, status=status, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def list_history(
        self,
        session: AsyncSession,
        group_id: UUID,
        owner_id: UUID,
        limit: int = HISTORY_LIMIT,
    ) -> Sequence[ChatMessageModel]:
        """
        Most recent visible messages of one private conversation, oldest first.

        Cancelled and still-generating messages are excluded.

        Args:
            session: Async database session
            group_id: Group UUID
            owner_id: Requester UUID
            limit: Maximum number of messages

        Returns:
            Active messages in chronological order
        """
        stmt = (
            select(ChatMessageModel)
            .where(
                ChatMessageModel.group_id == group_id,
                ChatMessageModel.owner_id == owner_id,
                ChatMessageModel.status == MessageStatus.ACTIVE,
            )
            .order_by(ChatMessageModel.created_at.desc(), ChatMessageModel.is_ai.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(reversed(result.scalars().all()))

    async def cancel_stale(
        self,
        session: AsyncSession,
        older_than: datetime,
        exclude_ids: Iterable[UUID] = (),
        group_id: UUID | None = None,
    ) -> int:
        """
        Cancel generating messages created before `older_than`.

        Used to recover placeholders orphaned by a crash or restart. Content
        is kept as-is.

        Args:
            session: Async database session
            older_than: Creation cutoff
            exclude_ids: Messages with a live generation session
            group_id: Restrict recovery to one group

        Returns:
            Number of messages cancelled
        """
        conditions = [
            ChatMessageModel.status == MessageStatus.GENERATING,
            ChatMessageModel.created_at < older_than,
        ]
        excluded = list(exclude_ids)
        if excluded:
            conditions.append(ChatMessageModel.id.not_in(excluded))
        if group_id is not None:
            conditions.append(ChatMessageModel.group_id == group_id)

        stmt = (
            update(ChatMessageModel)
            .where(*conditions)
            .values(status=MessageStatus.CANCELLED, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount


chat_message_crud = ChatMessageCRUD()
