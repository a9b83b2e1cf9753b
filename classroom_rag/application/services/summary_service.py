"""
Document summary generation.

Produces one synopsis and a key-topic list per document with the chat
model, embeds the synopsis and stores both for the first retrieval stage.
Synopsis and topics are requested concurrently; each has its own fallback
so a model failure still yields a usable summary.

Dependencies: langchain_core, sqlalchemy, classroom_rag.boundary
System role: Document-level index for hierarchical retrieval
"""

import asyncio
import logging
from uuid import UUID

from langchain_core.prompts import ChatPromptTemplate
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from classroom_rag.boundary.db.CRUD.document_crud import document_crud
from classroom_rag.boundary.db.CRUD.summary_crud import summary_crud
from classroom_rag.boundary.llm.embedder import EmbeddingService
from classroom_rag.boundary.llm.generator import StreamingGenerator
from classroom_rag.boundary.vdb.similarity_store import SimilarityStore
from classroom_rag.configs import get_settings
from classroom_rag.core.exceptions import GenerationFailedError, VectorStoreError
from classroom_rag.models.document import SummaryResult
from classroom_rag.observability import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)

SYNOPSIS_FALLBACK_CHARS = 1000

SYNOPSIS_PROMPT = ChatPromptTemplate.from_messages([
    (
        "system",
        "You summarize course documents. Write a concise summary (2-4 paragraphs) covering the "
        "main topics, key concepts and important details a student would search for.",
    ),
    ("human", "Summarize this document:\n\n{content}"),
])

TOPICS_PROMPT = ChatPromptTemplate.from_messages([
    (
        "system",
        "Extract the 5-10 most important topics or concepts from the document. "
        "Reply with a comma-separated list only.",
    ),
    ("human", "{content}"),
])


def parse_topics(reply: str) -> list[str]:
    """Split a comma-separated model reply into clean, non-empty topics."""
    return [topic.strip() for topic in reply.split(",") if topic.strip()]


class SummaryService:
    """
    Create-once document summaries.

    A summary is generated only if none exists for the document.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        store: SimilarityStore,
        embedder: EmbeddingService,
        synopsis_generator: StreamingGenerator | None = None,
        topics_generator: StreamingGenerator | None = None,
    ) -> None:
        """
        Initialize summary service.

        Args:
            session_factory: Factory for short-lived database sessions
            store: Similarity store receiving the summary embedding
            embedder: Embedding service
            synopsis_generator: Chat model wrapper for synopses
            topics_generator: Chat model wrapper for topic lists
        """
        self.config = get_settings().indexing
        self._session_factory = session_factory
        self._store = store
        self._embedder = embedder
        self._synopsis_generator = synopsis_generator or StreamingGenerator(
            max_output_tokens=self.config.summary_max_tokens
        )
        self._topics_generator = topics_generator or StreamingGenerator(
            max_output_tokens=self.config.topics_max_tokens
        )

    async def generate_summary(self, document_id: UUID, content: str) -> SummaryResult:
        """
        Summarize a document unless it already has a summary.

        Args:
            document_id: Document UUID
            content: Extracted document text

        Returns:
            SummaryResult: Outcome; success is True when a summary exists afterwards
        """
        async with self._session_factory() as session:
            if await summary_crud.exists_for_document(session, document_id):
                log_with_context(
                    logger,
                    logging.INFO,
                    f"{__name__}:generate_summary - Summary exists, skipping",
                    document_id=document_id,
                )
                return SummaryResult(document_id=document_id, success=True, message="Summary already exists")

        if len(content.strip()) < self.config.min_summary_chars:
            return SummaryResult(document_id=document_id, success=False, message="Content too short to summarize")

        synopsis, topics = await asyncio.gather(
            self._synopsis(document_id, content),
            self._topics(document_id, content),
        )

        embedding = await self._embedder.try_embed(synopsis)
        if embedding is None:
            return SummaryResult(document_id=document_id, success=False, message="Summary embedding failed")

        try:
            await self._store.add_summary(document_id, synopsis, topics, embedding)
        except VectorStoreError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:generate_summary - Storing summary failed",
                e,
                level=logging.WARNING,
                document_id=document_id,
            )
            return SummaryResult(document_id=document_id, success=False, message="Failed to store summary")

        try:
            async with self._session_factory() as session:
                await document_crud.mark_summary_generated(session, document_id)
                await session.commit()
        except SQLAlchemyError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:generate_summary - Flagging document failed",
                e,
                level=logging.WARNING,
                document_id=document_id,
            )

        log_with_context(
            logger,
            logging.INFO,
            f"{__name__}:generate_summary - Summary stored",
            document_id=document_id,
            summary_chars=len(synopsis),
            topics=len(topics),
        )
        return SummaryResult(
            document_id=document_id,
            success=True,
            message="Summary generated",
            summary=synopsis,
            key_topics=topics,
        )

    async def _synopsis(self, document_id: UUID, content: str) -> str:
        messages = SYNOPSIS_PROMPT.invoke({"content": content[: self.config.summary_input_chars]}).to_messages()
        try:
            synopsis = await self._synopsis_generator.complete(messages)
        except GenerationFailedError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:_synopsis - Falling back to leading text",
                e,
                level=logging.WARNING,
                document_id=document_id,
            )
            synopsis = ""
        return synopsis or content[:SYNOPSIS_FALLBACK_CHARS] + "..."

    async def _topics(self, document_id: UUID, content: str) -> list[str]:
        messages = TOPICS_PROMPT.invoke({"content": content[: self.config.topics_input_chars]}).to_messages()
        try:
            reply = await self._topics_generator.complete(messages)
        except GenerationFailedError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:_topics - No topics extracted",
                e,
                level=logging.WARNING,
                document_id=document_id,
            )
            return []
        return parse_topics(reply)
