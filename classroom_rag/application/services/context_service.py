"""
Context assembly for one question.

Picks a context strategy from corpus statistics, runs hierarchical
retrieval, applies the strategy, and falls back to raw excerpts of the most
recently uploaded documents when retrieval returns nothing. Also resolves
the group identity used in the answer preamble. Never raises: each failure
degrades to a fallback and is logged.

Dependencies: sqlalchemy, classroom_rag.core, classroom_rag.boundary
System role: Retrieval + sizing stage of the answer pipeline
"""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from classroom_rag.boundary.db.CRUD.document_crud import document_crud
from classroom_rag.boundary.db.CRUD.group_crud import group_crud
from classroom_rag.boundary.vdb.similarity_store import SimilarityStore
from classroom_rag.configs import get_settings
from classroom_rag.core.context_strategy import DEFAULT_STRATEGY, ContextStrategy, select_strategy
from classroom_rag.core.exceptions import VectorStoreError
from classroom_rag.core.retriever import HierarchicalRetriever
from classroom_rag.models.retrieval import AssembledContext, RetrievedPassage
from classroom_rag.observability import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)


class ContextAssembler:
    """Builds the AssembledContext handed to prompt construction."""

    def __init__(
        self,
        retriever: HierarchicalRetriever,
        store: SimilarityStore,
        session_factory: async_sessionmaker[AsyncSession],
        on_demand_documents: int | None = None,
        on_demand_chars_per_document: int | None = None,
        default_assistant_name: str | None = None,
    ) -> None:
        """
        Initialize context assembler.

        Args:
            retriever: Hierarchical retriever
            store: Similarity store (corpus statistics)
            session_factory: Factory for document and group lookups
            on_demand_documents: Recent documents used when retrieval is empty
            on_demand_chars_per_document: Excerpt length per on-demand document
            default_assistant_name: Used when the group sets no assistant name
        """
        settings = get_settings()
        self._retriever = retriever
        self._store = store
        self._session_factory = session_factory
        self.on_demand_documents = on_demand_documents or settings.retrieval.on_demand_documents
        self.on_demand_chars_per_document = (
            on_demand_chars_per_document or settings.retrieval.on_demand_chars_per_document
        )
        self.default_assistant_name = default_assistant_name or settings.generation.assistant_name

    async def strategy(self, group_id: UUID) -> ContextStrategy:
        """Context strategy for the group's current corpus size."""
        try:
            stats = await self._store.corpus_stats(group_id)
        except VectorStoreError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:strategy - Corpus stats unavailable, using default strategy",
                e,
                level=logging.WARNING,
                group_id=group_id,
            )
            return DEFAULT_STRATEGY

        strategy = select_strategy(stats.document_count)
        log_with_context(
            logger,
            logging.INFO,
            f"{__name__}:strategy - {strategy.reasoning}",
            group_id=group_id,
            documents=stats.document_count,
            passages=stats.passage_count,
            max_items=strategy.max_items,
            chars_per_item=strategy.chars_per_item,
        )
        return strategy

    async def assemble(self, group_id: UUID, question: str) -> AssembledContext:
        """
        Retrieve and size the context for a question.

        Args:
            group_id: Group UUID
            question: Requester's question

        Returns:
            AssembledContext: Sized passages (or on-demand excerpts) plus group identity
        """
        strategy = await self.strategy(group_id)
        retrieved = await self._retriever.retrieve(group_id, question, strategy.max_items)
        passages = strategy.apply(retrieved)
        used_fallback = False

        if not passages:
            passages = await self.on_demand_excerpts(group_id)
            used_fallback = bool(passages)
            log_with_context(
                logger,
                logging.INFO,
                f"{__name__}:assemble - Retrieval empty, using on-demand excerpts",
                group_id=group_id,
                excerpts=len(passages),
            )

        group_name, assistant_name = await self.group_identity(group_id)
        return AssembledContext(
            group_name=group_name,
            assistant_name=assistant_name,
            passages=passages,
            used_on_demand_fallback=used_fallback,
        )

    async def on_demand_excerpts(self, group_id: UUID) -> list[RetrievedPassage]:
        """Leading text of the most recently uploaded documents, capped in length."""
        try:
            async with self._session_factory() as session:
                documents = await document_crud.get_recent_with_content(
                    session, group_id, self.on_demand_documents
                )
        except SQLAlchemyError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:on_demand_excerpts - Document lookup failed",
                e,
                level=logging.WARNING,
                group_id=group_id,
            )
            return []

        return [
            RetrievedPassage(
                source_label=document.filename,
                content=document.content[: self.on_demand_chars_per_document],
                document_id=document.id,
            )
            for document in documents
        ]

    async def group_identity(self, group_id: UUID) -> tuple[str, str]:
        """(group display name, assistant name), with defaults if the lookup fails."""
        defaults = AssembledContext()
        try:
            async with self._session_factory() as session:
                group = await group_crud.get_by_id(session, group_id)
        except SQLAlchemyError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:group_identity - Group lookup failed",
                e,
                level=logging.WARNING,
                group_id=group_id,
            )
            return defaults.group_name, self.default_assistant_name

        if group is None:
            return defaults.group_name, self.default_assistant_name
        return group.display_name, group.assistant_name or self.default_assistant_name
