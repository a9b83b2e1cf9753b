"""
Streaming answer coordinator.

Runs one answer from question to terminal message state:

1. Register a generation session (one per group and requester)
2. Persist the question and a `generating` placeholder
3. Notify the requester that generation started
4. Assemble context and prompt
5. Stream model output, checking for cancellation before and after each
   forwarded chunk; forwarded chunks accumulate into the persisted content
6. Persist the terminal state (active or cancelled) and notify the requester

Model failures become a short fallback message persisted as `active`, so no
message is ever left generating.

Dependencies: classroom_rag.core, classroom_rag.boundary.llm, classroom_rag.application.services
System role: Generation coordinator for the chat transport
"""

import asyncio
import logging
from contextlib import aclosing
from typing import Protocol
from uuid import UUID, uuid4

from classroom_rag.application.services.context_service import ContextAssembler
from classroom_rag.application.services.message_lifecycle_service import MessageLifecycleService
from classroom_rag.boundary.llm.generator import StreamingGenerator
from classroom_rag.core.exceptions import GenerationErrorKind
from classroom_rag.core.generation_sessions import GenerationSession, GenerationSessionManager
from classroom_rag.core.prompt_builder import build_answer_messages
from classroom_rag.models.chat import MessageStatus
from classroom_rag.models.generation import GenerationChunk, GenerationEnd, GenerationError
from classroom_rag.models.streaming import GenerationEndReason, StreamEvent
from classroom_rag.observability import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)

FALLBACK_MESSAGES: dict[GenerationErrorKind, str] = {
    GenerationErrorKind.QUOTA: (
        "Sorry, the AI service quota has been exceeded. Please check the API key and billing."
    ),
    GenerationErrorKind.AUTH: (
        "Sorry, the AI service API key is invalid or not configured. Please contact the administrator."
    ),
    GenerationErrorKind.TIMEOUT: "Sorry, the response took too long to generate. Please try again.",
    GenerationErrorKind.UNKNOWN: (
        "Sorry, I encountered an error processing your request. Please try again."
    ),
}


class EventSink(Protocol):
    """Outbound side of the requester's connection."""

    async def send(self, event: StreamEvent) -> None: ...


class ChatService:
    """
    Coordinates retrieval, streaming generation and message persistence.

    One instance serves all connections; per-answer state lives in the
    GenerationSession and local variables of `answer()`.
    """

    def __init__(
        self,
        context_assembler: ContextAssembler,
        generator: StreamingGenerator,
        lifecycle: MessageLifecycleService,
        session_manager: GenerationSessionManager,
    ) -> None:
        """
        Initialize chat service.

        Args:
            context_assembler: Retrieval and sizing stage
            generator: Streaming chat model wrapper
            lifecycle: Message persistence
            session_manager: Registry of in-flight generations
        """
        self._context = context_assembler
        self._generator = generator
        self._lifecycle = lifecycle
        self._sessions = session_manager

    @property
    def sessions(self) -> GenerationSessionManager:
        return self._sessions

    async def answer(
        self,
        group_id: UUID,
        requester_id: UUID,
        question: str,
        sink: EventSink,
    ) -> UUID:
        """
        Answer a question, streaming events to `sink`.

        Args:
            group_id: Group whose documents are used
            requester_id: Owner of the private conversation
            question: Question text
            sink: Requester's connection

        Returns:
            UUID: Assistant message id

        Raises:
            GenerationInProgressError: If the conversation already has an answer generating
        """
        message_id = uuid4()
        session = self._sessions.register(message_id, group_id, requester_id)
        parts: list[str] = []
        sources: list[str] = []

        log_with_context(
            logger,
            logging.INFO,
            f"{__name__}:answer - START",
            message_id=message_id,
            group_id=group_id,
            question_chars=len(question),
        )

        try:
            await self._lifecycle.start_turn(message_id, group_id, requester_id, question)
            await self._send(sink, StreamEvent.generation_started(message_id))

            context = await self._context.assemble(group_id, question)
            sources = context.sources
            messages = build_answer_messages(
                question,
                context.passages,
                group_name=context.group_name,
                assistant_name=context.assistant_name,
            )

            outcome = await self._stream(session, messages, parts, sink)
        except asyncio.CancelledError:
            # Task torn down (shutdown or dropped connection): keep what was produced
            self._sessions.cancel(message_id)
            await asyncio.shield(self._finish_cancelled(session, parts, sink=None))
            raise
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:answer - Unexpected failure",
                e,
                message_id=message_id,
                group_id=group_id,
            )
            outcome = GenerationError(kind=GenerationErrorKind.UNKNOWN, detail=str(e))

        if session.cancelled or outcome is None:
            await self._finish_cancelled(session, parts, sink)
        elif isinstance(outcome, GenerationEnd):
            await self._finish_completed(session, parts, sources, sink)
        else:
            await self._finish_failed(session, parts, outcome, sink)
        return message_id

    async def stop(self, message_id: UUID, group_id: UUID | None = None) -> bool:
        """
        Request cancellation of an in-flight answer.

        Args:
            message_id: Assistant message id
            group_id: When given, the answer must belong to this group

        Returns:
            True if the answer was generating and is now cancelled
        """
        session = self._sessions.get(message_id)
        if session is None or (group_id is not None and session.group_id != group_id):
            return False
        return self._sessions.cancel(message_id)

    async def _stream(
        self,
        session: GenerationSession,
        messages: list,
        parts: list[str],
        sink: EventSink,
    ) -> GenerationEnd | GenerationError | None:
        """
        Forward model chunks until the stream ends, fails or is cancelled.

        Returns:
            GenerationEnd, GenerationError, or None when cancelled
        """
        results = self._generator.stream(messages, session.cancel_event)
        async with aclosing(results):
            async for result in results:
                if isinstance(result, GenerationChunk):
                    if session.cancelled:
                        return None
                    await self._send(sink, StreamEvent.generation_chunk(session.message_id, result.text))
                    if session.cancelled:
                        return None
                    parts.append(result.text)
                else:
                    return result

        if session.cancelled:
            return None
        return GenerationError(kind=GenerationErrorKind.UNKNOWN, detail="Stream ended without an end marker")

    async def _finish_completed(
        self,
        session: GenerationSession,
        parts: list[str],
        sources: list[str],
        sink: EventSink,
    ) -> None:
        content = "".join(parts)
        await self._lifecycle.finalize(session.message_id, content, MessageStatus.ACTIVE)
        self._sessions.unregister(session.message_id)
        log_with_context(
            logger,
            logging.INFO,
            f"{__name__}:answer - COMPLETED",
            message_id=session.message_id,
            answer_chars=len(content),
            sources=len(sources),
        )
        await self._send(
            sink,
            StreamEvent.generation_ended(session.message_id, GenerationEndReason.COMPLETED, sources),
        )

    async def _finish_cancelled(
        self,
        session: GenerationSession,
        parts: list[str],
        sink: EventSink | None,
    ) -> None:
        content = "".join(parts)
        await self._lifecycle.finalize(session.message_id, content, MessageStatus.CANCELLED)
        self._sessions.unregister(session.message_id)
        log_with_context(
            logger,
            logging.INFO,
            f"{__name__}:answer - CANCELLED",
            message_id=session.message_id,
            kept_chars=len(content),
            kept_chunks=len(parts),
        )
        if sink is not None:
            await self._send(sink, StreamEvent.generation_ended(session.message_id, GenerationEndReason.CANCELLED))

    async def _finish_failed(
        self,
        session: GenerationSession,
        parts: list[str],
        error: GenerationError,
        sink: EventSink,
    ) -> None:
        partial = "".join(parts)
        fallback = FALLBACK_MESSAGES.get(error.kind, FALLBACK_MESSAGES[GenerationErrorKind.UNKNOWN])
        suffix = f"\n\n{fallback}" if partial else fallback
        await self._lifecycle.finalize(session.message_id, partial + suffix, MessageStatus.ACTIVE)
        self._sessions.unregister(session.message_id)
        log_with_context(
            logger,
            logging.ERROR,
            f"{__name__}:answer - FAILED",
            message_id=session.message_id,
            kind=error.kind.value,
            detail=error.detail,
            partial_chars=len(partial),
        )
        await self._send(sink, StreamEvent.generation_chunk(session.message_id, suffix))
        await self._send(sink, StreamEvent.generation_ended(session.message_id, GenerationEndReason.FAILED))

    async def _send(self, sink: EventSink, event: StreamEvent) -> None:
        try:
            await sink.send(event)
        except Exception as e:
            # Connection gone; persistence continues regardless
            log_with_context(
                logger,
                logging.WARNING,
                f"{__name__}:_send - Could not deliver event",
                event=event.event.value,
                error=f"{type(e).__name__}: {e}",
            )
