"""
Dependency injection container.

Builds the process-wide service graph lazily and exposes FastAPI
dependency functions for it. Tests replace services through
`app.dependency_overrides`.

Dependencies: classroom_rag.configs, classroom_rag.application, classroom_rag.boundary
System role: DI container for service injection
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from classroom_rag.application.services import (
    ChatService,
    ContextAssembler,
    IndexingService,
    MessageLifecycleService,
    SummaryService,
)
from classroom_rag.boundary.db.connection import get_async_session_factory
from classroom_rag.boundary.llm import EmbeddingService, StreamingGenerator
from classroom_rag.boundary.vdb import PgVectorStore
from classroom_rag.configs import get_settings
from classroom_rag.core.generation_sessions import GenerationSessionManager
from classroom_rag.core.retriever import HierarchicalRetriever


class ServiceCache:
    """Container for cached service instances."""

    def __init__(self) -> None:
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._session_manager: GenerationSessionManager | None = None
        self._embedder: EmbeddingService | None = None
        self._store: PgVectorStore | None = None
        self._lifecycle: MessageLifecycleService | None = None
        self._chat_service: ChatService | None = None
        self._indexing_service: IndexingService | None = None

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = get_async_session_factory()
        return self._session_factory

    @property
    def session_manager(self) -> GenerationSessionManager:
        if self._session_manager is None:
            self._session_manager = GenerationSessionManager()
        return self._session_manager

    @property
    def embedder(self) -> EmbeddingService:
        if self._embedder is None:
            self._embedder = EmbeddingService()
        return self._embedder

    @property
    def store(self) -> PgVectorStore:
        if self._store is None:
            self._store = PgVectorStore(self.session_factory)
        return self._store

    @property
    def lifecycle(self) -> MessageLifecycleService:
        if self._lifecycle is None:
            self._lifecycle = MessageLifecycleService(self.session_factory, self.session_manager)
        return self._lifecycle

    @property
    def chat_service(self) -> ChatService:
        """Get cached generation coordinator."""
        if self._chat_service is None:
            retrieval = get_settings().retrieval
            retriever = HierarchicalRetriever(
                self.store,
                self.embedder,
                summary_candidates=retrieval.summary_candidates,
                recency_fallback_limit=retrieval.recency_fallback_limit,
            )
            self._chat_service = ChatService(
                context_assembler=ContextAssembler(retriever, self.store, self.session_factory),
                generator=StreamingGenerator(),
                lifecycle=self.lifecycle,
                session_manager=self.session_manager,
            )
        return self._chat_service

    @property
    def indexing_service(self) -> IndexingService:
        """Get cached indexing pipeline."""
        if self._indexing_service is None:
            summary_service = SummaryService(self.session_factory, self.store, self.embedder)
            self._indexing_service = IndexingService(
                self.session_factory,
                self.store,
                self.embedder,
                summary_service,
            )
        return self._indexing_service

    def clear(self) -> None:
        """Clear all cached instances."""
        self._session_factory = None
        self._session_manager = None
        self._embedder = None
        self._store = None
        self._lifecycle = None
        self._chat_service = None
        self._indexing_service = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


def get_chat_service() -> ChatService:
    return _service_cache.chat_service


def get_indexing_service() -> IndexingService:
    return _service_cache.indexing_service


def get_lifecycle_service() -> MessageLifecycleService:
    return _service_cache.lifecycle
