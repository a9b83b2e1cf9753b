"""
Two-stage hierarchical retrieval.

Stage 1 ranks document summaries against the question and keeps the best
few documents; stage 2 ranks passages inside those documents only. When no
summaries exist, or the narrowed search finds nothing, a single-stage
passage search over the whole group is used instead. When the question
cannot be embedded or the store fails, passages of the most recent uploads
are returned so the answer still has some context.

Dependencies: classroom_rag.boundary.vdb (protocol only)
System role: Narrow a group's corpus to a small ranked passage list
"""

import logging
from typing import Protocol
from uuid import UUID

from classroom_rag.boundary.vdb.similarity_store import SimilarityStore
from classroom_rag.core.exceptions import EmbeddingError, RetrievalDegradedError, VectorStoreError
from classroom_rag.models.retrieval import RetrievedPassage
from classroom_rag.observability import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY_CANDIDATES = 3
DEFAULT_RECENCY_FALLBACK_LIMIT = 3


class QueryEmbedder(Protocol):
    async def embed(self, text: str) -> list[float]: ...


class HierarchicalRetriever:
    """
    Summary-then-passage retriever over a SimilarityStore.

    Attributes:
        summary_candidates: Documents kept after stage 1
        recency_fallback_limit: Passages returned when semantic search is unavailable
    """

    def __init__(
        self,
        store: SimilarityStore,
        embedder: QueryEmbedder,
        summary_candidates: int = DEFAULT_SUMMARY_CANDIDATES,
        recency_fallback_limit: int = DEFAULT_RECENCY_FALLBACK_LIMIT,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self.summary_candidates = summary_candidates
        self.recency_fallback_limit = recency_fallback_limit

    async def retrieve(self, group_id: UUID, query: str, max_items: int) -> list[RetrievedPassage]:
        """
        Rank the group's passages for a question.

        Never raises for embedding or store failures; those degrade to the
        recency fallback.

        Args:
            group_id: Group whose corpus is searched
            query: Question text
            max_items: Maximum passages returned

        Returns:
            list[RetrievedPassage]: At most max_items passages, ascending distance
        """
        try:
            embedding = await self._embedder.embed(query)
        except EmbeddingError as e:
            degraded = RetrievalDegradedError("Question embedding failed", str(group_id), dict(e.details))
            log_exception_with_context(
                logger,
                f"{__name__}:retrieve - Falling back to recent passages",
                degraded,
                level=logging.WARNING,
                group_id=group_id,
            )
            return await self._recent(group_id, max_items)

        try:
            passages = await self._hierarchical(group_id, embedding, max_items)
        except VectorStoreError as e:
            degraded = RetrievalDegradedError("Similarity search failed", str(group_id), dict(e.details))
            log_exception_with_context(
                logger,
                f"{__name__}:retrieve - Falling back to recent passages",
                degraded,
                level=logging.WARNING,
                group_id=group_id,
            )
            return await self._recent(group_id, max_items)

        return passages[:max_items]

    async def _hierarchical(
        self,
        group_id: UUID,
        embedding: list[float],
        max_items: int,
    ) -> list[RetrievedPassage]:
        # Stage 1
        documents = await self._store.search_summaries(group_id, embedding, self.summary_candidates)
        if not documents:
            log_with_context(
                logger,
                logging.DEBUG,
                f"{__name__}:retrieve - No summaries, single-stage search",
                group_id=group_id,
            )
            return await self._store.search_passages(group_id, embedding, max_items)

        # Stage 2
        document_ids = [document.document_id for document in documents]
        passages = await self._store.search_passages(group_id, embedding, max_items, document_ids=document_ids)
        if passages:
            log_with_context(
                logger,
                logging.INFO,
                f"{__name__}:retrieve - Hierarchical search",
                group_id=group_id,
                documents=len(document_ids),
                passages=len(passages),
            )
            return passages

        log_with_context(
            logger,
            logging.INFO,
            f"{__name__}:retrieve - Narrowed documents have no passages, single-stage search",
            group_id=group_id,
        )
        return await self._store.search_passages(group_id, embedding, max_items)

    async def _recent(self, group_id: UUID, max_items: int) -> list[RetrievedPassage]:
        try:
            return await self._store.recent_passages(group_id, min(self.recency_fallback_limit, max_items))
        except VectorStoreError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:retrieve - Recency fallback failed, no passages",
                e,
                level=logging.WARNING,
                group_id=group_id,
            )
            return []
