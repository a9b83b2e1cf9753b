"""
Document summary ORM model.

At most one synopsis per document, with extracted key topics and the
synopsis embedding used by the first retrieval stage.

Dependencies: sqlalchemy, pgvector
System role: Document-level similarity search rows
"""

import uuid

from pgvector.sqlalchemy import Vector
from sqlalchemy import JSON, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from classroom_rag.boundary.db.base import Base, TimestampMixin, UUIDMixin
from classroom_rag.configs import get_settings


class DocumentSummaryModel(Base, UUIDMixin, TimestampMixin):
    """
    Document summary ORM model.

    The unique constraint on document_id backs the create-once rule that the
    summary service also checks before generating.
    """

    __tablename__ = "document_summaries"

    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    key_topics: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    summary_embedding = mapped_column(Vector(get_settings().embedding.dimension), nullable=False)
