"""
Document indexing schemas.

Dependencies: pydantic
System role: Indexing and summary result contracts
"""

from uuid import UUID

from pydantic import BaseModel, Field


class IndexDocumentRequest(BaseModel):
    """Request to index already-extracted document text."""

    text: str | None = Field(
        default=None,
        description="Extracted text; falls back to the stored document content when omitted",
    )


class SummaryResult(BaseModel):
    """Outcome of summary generation for one document."""

    document_id: UUID
    success: bool
    message: str = ""
    summary: str | None = None
    key_topics: list[str] = Field(default_factory=list)


class IndexingResult(BaseModel):
    """Outcome of indexing one document."""

    document_id: UUID
    success: bool
    passages_total: int = Field(default=0, description="Passages produced by splitting")
    passages_stored: int = Field(default=0, description="Passages embedded and stored")
    passages_skipped: int = Field(default=0, description="Passages skipped after embedding failures")
    summary: SummaryResult | None = None
    error: str | None = None
