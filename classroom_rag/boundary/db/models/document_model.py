"""
Document ORM model.

Represents an uploaded document, its extracted text and indexing status.
Upload handling and text extraction happen outside this service; rows are
created by the upload flow and updated by the indexing pipeline.

Dependencies: sqlalchemy, classroom_rag.boundary.db.base
System role: Document persistence for indexing and on-demand fallback
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from classroom_rag.boundary.db.base import Base, TimestampMixin, UUIDMixin, utcnow


class DocumentStatus(str, enum.Enum):
    """
    Document processing lifecycle states.

    PENDING: Uploaded, not yet indexed
    PROCESSING: Indexing pipeline started
    EXTRACTED: Text stored, passages being embedded
    PROCESSED: Passages stored; counted by the context sizing policy
    FAILED: Indexing error; last_error holds details
    """

    PENDING = "pending"
    PROCESSING = "processing"
    EXTRACTED = "extracted"
    PROCESSED = "processed"
    FAILED = "failed"


class DocumentModel(Base, UUIDMixin, TimestampMixin):
    """
    Document ORM model tracking indexing state.

    Lifecycle: PENDING -> PROCESSING -> EXTRACTED -> PROCESSED, or FAILED.
    Passages and the summary are deleted with the document (ON DELETE CASCADE).
    """

    __tablename__ = "documents"

    group_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True, doc="Extracted text")
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    processing_status: Mapped[DocumentStatus] = mapped_column(
        Enum(
            DocumentStatus,
            native_enum=False,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=DocumentStatus.PENDING,
    )
    passage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_error: Mapped[str | None] = mapped_column(String(500), nullable=True)
    summary_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
