"""
Retrieval domain models.

Ephemeral, per-query values produced by the similarity store and the
hierarchical retriever. None of these are persisted.

Dependencies: pydantic
System role: Retrieval data structures
"""

from uuid import UUID

from pydantic import BaseModel, Field


class RetrievedPassage(BaseModel):
    """One ranked retrieval result."""

    source_label: str = Field(description="Display name of the source document (filename)")
    content: str = Field(description="Passage text")
    distance: float | None = Field(
        default=None,
        description="Cosine distance to the query; None for non-semantic fallbacks",
    )
    document_id: UUID | None = Field(default=None, description="Owning document")
    passage_index: int | None = Field(default=None, description="Position within the document")


class ScoredDocument(BaseModel):
    """A document ranked by the similarity of its summary to the query."""

    document_id: UUID
    source_label: str
    distance: float


class CorpusStats(BaseModel):
    """Aggregate statistics over a group's indexed corpus."""

    document_count: int = Field(default=0, ge=0, description="Fully indexed documents")
    passage_count: int = Field(default=0, ge=0, description="Stored passages across those documents")


class AssembledContext(BaseModel):
    """Context handed to prompt assembly for one question."""

    group_name: str = Field(default="this group", description="Group identity for the preamble")
    assistant_name: str = Field(default="Assistant", description="Name the assistant answers as")
    passages: list[RetrievedPassage] = Field(default_factory=list)
    used_on_demand_fallback: bool = Field(
        default=False,
        description="True when passages are raw excerpts of recent uploads",
    )

    @property
    def sources(self) -> list[str]:
        """Distinct source labels in first-seen order."""
        return list(dict.fromkeys(p.source_label for p in self.passages))
