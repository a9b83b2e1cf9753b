"""
Passage ORM model.

One overlapping window of a document's text plus its embedding. Written
once by the indexing pipeline and never updated.

Dependencies: sqlalchemy, pgvector
System role: Passage-level similarity search rows
"""

import uuid

from pgvector.sqlalchemy import Vector
from sqlalchemy import ForeignKey, Integer, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from classroom_rag.boundary.db.base import Base, TimestampMixin, UUIDMixin
from classroom_rag.configs import get_settings


class PassageModel(Base, UUIDMixin, TimestampMixin):
    """
    Passage ORM model.

    Attributes:
        document_id: Owning document (cascade delete)
        passage_index: Position of the window within the document
        content: Passage text
        embedding: Vector used for cosine-distance search
    """

    __tablename__ = "document_passages"
    __table_args__ = (
        UniqueConstraint("document_id", "passage_index", name="uq_passage_document_index"),
    )

    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    passage_index: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    embedding = mapped_column(Vector(get_settings().embedding.dimension), nullable=False)
