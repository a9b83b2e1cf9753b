"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory SQLite database, in-memory similarity store, scripted
embedder and chat model fakes, recording event sink
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import math
import uuid
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone

import pytest
from langchain_core.messages import AIMessage, AIMessageChunk

from classroom_rag.core.exceptions import EmbeddingError, VectorStoreError
from classroom_rag.models.retrieval import CorpusStats, RetrievedPassage, ScoredDocument
from classroom_rag.models.streaming import StreamEvent, StreamEventType


def cosine_distance(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return 1.0 - dot / norm if norm else 1.0


class FakeSimilarityStore:
    """In-memory SimilarityStore with the same ordering rules as PgVectorStore."""

    def __init__(self) -> None:
        self.documents: dict[uuid.UUID, dict] = {}
        self.passages: list[dict] = []
        self.summaries: dict[uuid.UUID, dict] = {}
        self.failing: set[str] = set()
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def add_document(self, group_id: uuid.UUID, filename: str, processed: bool = True) -> uuid.UUID:
        document_id = uuid.uuid4()
        self._clock += timedelta(minutes=1)
        self.documents[document_id] = {
            "group_id": group_id,
            "filename": filename,
            "uploaded_at": self._clock,
            "processed": processed,
        }
        return document_id

    def _check(self, operation: str) -> None:
        if operation in self.failing:
            raise VectorStoreError("Injected store failure", operation=operation)

    async def add_passage(self, document_id, passage_index, content, embedding) -> None:
        self._check("insert")
        self.passages.append({
            "document_id": document_id,
            "passage_index": passage_index,
            "content": content,
            "embedding": list(embedding),
        })

    async def add_summary(self, document_id, summary, key_topics, embedding) -> None:
        self._check("insert")
        if document_id in self.summaries:
            raise VectorStoreError("Duplicate summary", operation="insert")
        self.summaries[document_id] = {
            "summary": summary,
            "key_topics": list(key_topics),
            "embedding": list(embedding),
        }

    async def search_summaries(self, group_id, query_embedding, limit) -> list[ScoredDocument]:
        self._check("search_summaries")
        scored = [
            ScoredDocument(
                document_id=document_id,
                source_label=self.documents[document_id]["filename"],
                distance=cosine_distance(row["embedding"], query_embedding),
            )
            for document_id, row in self.summaries.items()
            if self.documents[document_id]["group_id"] == group_id
        ]
        scored.sort(key=lambda d: (d.distance, str(d.document_id)))
        return scored[:limit]

    async def search_passages(self, group_id, query_embedding, limit, document_ids=None) -> list[RetrievedPassage]:
        self._check("search_passages")
        allowed = set(document_ids) if document_ids is not None else None
        results = [
            RetrievedPassage(
                source_label=self.documents[row["document_id"]]["filename"],
                content=row["content"],
                distance=cosine_distance(row["embedding"], query_embedding),
                document_id=row["document_id"],
                passage_index=row["passage_index"],
            )
            for row in self.passages
            if self.documents[row["document_id"]]["group_id"] == group_id
            and (allowed is None or row["document_id"] in allowed)
        ]
        results.sort(key=lambda p: (p.distance, str(p.document_id), p.passage_index))
        return results[:limit]

    async def recent_passages(self, group_id, limit) -> list[RetrievedPassage]:
        self._check("recent_passages")
        rows = [row for row in self.passages if self.documents[row["document_id"]]["group_id"] == group_id]
        rows.sort(key=lambda row: (-self.documents[row["document_id"]]["uploaded_at"].timestamp(), row["passage_index"]))
        return [
            RetrievedPassage(
                source_label=self.documents[row["document_id"]]["filename"],
                content=row["content"],
                document_id=row["document_id"],
                passage_index=row["passage_index"],
            )
            for row in rows[:limit]
        ]

    async def corpus_stats(self, group_id) -> CorpusStats:
        self._check("stats")
        processed = {
            document_id
            for document_id, document in self.documents.items()
            if document["group_id"] == group_id and document["processed"]
        }
        return CorpusStats(
            document_count=len(processed),
            passage_count=sum(1 for row in self.passages if row["document_id"] in processed),
        )


class FakeEmbedder:
    """Embedder returning registered vectors; unknown text maps to `default`."""

    def __init__(self, dimension: int = 3) -> None:
        self.vectors: dict[str, list[float]] = {}
        self.default = [1.0] * dimension
        self.fail_all = False
        self.fail_texts: set[str] = set()
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_all or text in self.fail_texts:
            raise EmbeddingError("Injected embedding failure")
        return list(self.vectors.get(text, self.default))

    async def try_embed(self, text: str) -> list[float] | None:
        try:
            return await self.embed(text)
        except EmbeddingError:
            return None


class ScriptedChatModel:
    """
    Chat model stand-in exposing astream/ainvoke.

    `before_chunk(index)` runs before chunk `index` is produced; `error`
    is raised after all chunks when set.
    """

    def __init__(
        self,
        chunks: Sequence[str] = (),
        reply: str = "",
        error: Exception | None = None,
        before_chunk: Callable[[int], None] | None = None,
    ) -> None:
        self.chunks = list(chunks)
        self.reply = reply
        self.error = error
        self.before_chunk = before_chunk
        self.produced = 0
        self.received: list = []

    async def astream(self, messages):
        self.received = list(messages)
        for index, text in enumerate(self.chunks):
            if self.before_chunk is not None:
                self.before_chunk(index)
            self.produced += 1
            yield AIMessageChunk(content=text)
        if self.error is not None:
            raise self.error

    async def ainvoke(self, messages):
        self.received = list(messages)
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.reply)


class RecordingSink:
    """EventSink collecting every event sent to the requester."""

    def __init__(self, on_send: Callable[[StreamEvent], None] | None = None) -> None:
        self.events: list[StreamEvent] = []
        self.on_send = on_send

    async def send(self, event: StreamEvent) -> None:
        self.events.append(event)
        if self.on_send is not None:
            self.on_send(event)

    def of_type(self, event_type: StreamEventType) -> list[StreamEvent]:
        return [event for event in self.events if event.event == event_type]


@pytest.fixture
def group_id() -> uuid.UUID:
    """Provide sample group UUID for testing."""
    return uuid.uuid4()


@pytest.fixture
def requester_id() -> uuid.UUID:
    """Provide sample requester UUID for testing."""
    return uuid.uuid4()


@pytest.fixture
def fake_store() -> FakeSimilarityStore:
    return FakeSimilarityStore()


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
async def test_engine():
    """
    Create in-memory SQLite async engine with all tables.

    Yields:
        AsyncEngine: Engine shared by every session of one test
    """
    from sqlalchemy.ext.asyncio import create_async_engine
    from sqlalchemy.pool import StaticPool

    from classroom_rag.boundary.db.connection import create_tables

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def test_session_factory(test_engine):
    """Session factory bound to the in-memory database."""
    from classroom_rag.boundary.db.connection import get_async_session_factory

    return get_async_session_factory(test_engine)


@pytest.fixture
async def test_async_db(test_session_factory):
    """
    Provide one session on the in-memory database.

    Yields:
        AsyncSession: Test database session, rolled back afterwards
    """
    async with test_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def scripted_chat_model() -> type[ScriptedChatModel]:
    """Expose the scripted chat model class so tests can build variants."""
    return ScriptedChatModel


@pytest.fixture
def sink_factory() -> type[RecordingSink]:
    """Expose RecordingSink for tests that react to sent events."""
    return RecordingSink
