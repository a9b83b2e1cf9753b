"""
Generation session registry.

Tracks in-flight streamed answers. Each session binds a cancellation event
to one assistant message id and one (group, requester) conversation; at most
one session exists per conversation. Sessions live in memory only and are
removed on completion, cancellation or failure.

Dependencies: None (stdlib only)
System role: Cancellation signalling between transport and coordinator
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID

from classroom_rag.core.exceptions import GenerationInProgressError

logger = logging.getLogger(__name__)


@dataclass
class GenerationSession:
    """One in-flight answer and its cancellation handle."""

    message_id: UUID
    group_id: UUID
    requester_id: UUID
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def conversation_key(self) -> tuple[UUID, UUID]:
        return (self.group_id, self.requester_id)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()


class GenerationSessionManager:
    """
    Concurrency-safe map of active generation sessions.

    `register`, `cancel` and `unregister` are the only mutations. `cancel`
    sets the event and removes the session under one lock acquisition, so a
    stopped session can never be observed as still active.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_message: dict[UUID, GenerationSession] = {}
        self._by_conversation: dict[tuple[UUID, UUID], UUID] = {}

    def register(self, message_id: UUID, group_id: UUID, requester_id: UUID) -> GenerationSession:
        """
        Create and store a session for a new answer.

        Args:
            message_id: Assistant message id
            group_id: Group UUID
            requester_id: Requester UUID

        Returns:
            GenerationSession: The registered session

        Raises:
            GenerationInProgressError: If the conversation already has an active session
        """
        session = GenerationSession(message_id=message_id, group_id=group_id, requester_id=requester_id)
        with self._lock:
            existing = self._by_conversation.get(session.conversation_key)
            if existing is not None:
                raise GenerationInProgressError(str(group_id), str(requester_id), str(existing))
            self._by_message[message_id] = session
            self._by_conversation[session.conversation_key] = message_id

        logger.info(
            f"{__name__}:register - Session registered",
            extra={"message_id": str(message_id), "group_id": str(group_id)},
        )
        return session

    def unregister(self, message_id: UUID) -> GenerationSession | None:
        """Remove a session. Idempotent; returns the removed session, if any."""
        with self._lock:
            return self._pop(message_id)

    def cancel(self, message_id: UUID) -> bool:
        """
        Signal cancellation and remove the session atomically.

        Returns:
            True if a session was active and is now cancelled
        """
        with self._lock:
            session = self._pop(message_id)
            if session is None:
                return False
            session.cancel_event.set()

        logger.info(f"{__name__}:cancel - Session cancelled", extra={"message_id": str(message_id)})
        return True

    def cancel_conversation(self, group_id: UUID, requester_id: UUID) -> UUID | None:
        """
        Cancel whatever is generating for a (group, requester) pair.

        Returns:
            The cancelled message id, or None if nothing was active
        """
        with self._lock:
            message_id = self._by_conversation.get((group_id, requester_id))
            session = self._pop(message_id) if message_id is not None else None
            if session is None:
                return None
            session.cancel_event.set()

        logger.info(f"{__name__}:cancel_conversation - Session cancelled", extra={"message_id": str(message_id)})
        return message_id

    def get(self, message_id: UUID) -> GenerationSession | None:
        with self._lock:
            return self._by_message.get(message_id)

    def active_for(self, group_id: UUID, requester_id: UUID) -> GenerationSession | None:
        with self._lock:
            message_id = self._by_conversation.get((group_id, requester_id))
            return self._by_message.get(message_id) if message_id is not None else None

    def active_message_ids(self) -> set[UUID]:
        with self._lock:
            return set(self._by_message)

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_message)

    def _pop(self, message_id: UUID) -> GenerationSession | None:
        # Caller holds the lock
        session = self._by_message.pop(message_id, None)
        if session is not None:
            self._by_conversation.pop(session.conversation_key, None)
        return session
