"""
Chat message ORM model.

Messages belong to the private conversation between one requester and the
assistant inside one group. Assistant answers start as `generating`
placeholders and end as `active` or `cancelled`.

Dependencies: sqlalchemy, classroom_rag.boundary.db.base
System role: Conversation persistence and generation lifecycle state
"""

import uuid

from sqlalchemy import Boolean, Enum, ForeignKey, Index, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from classroom_rag.boundary.db.base import Base, TimestampMixin, UUIDMixin
from classroom_rag.models.chat import MessageStatus


class ChatMessageModel(Base, UUIDMixin, TimestampMixin):
    """
    Chat message ORM model.

    Attributes:
        group_id: Group the conversation belongs to
        owner_id: Requester whose private conversation this is
        author_id: Sender user id; None for assistant messages
        is_ai: True for assistant messages
        content: Message text (partial while generating)
        status: Lifecycle state
    """

    __tablename__ = "chat_messages"
    __table_args__ = (
        Index("ix_chat_messages_conversation", "group_id", "owner_id", "created_at"),
        Index("ix_chat_messages_status", "status"),
    )

    group_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    author_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    is_ai: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[MessageStatus] = mapped_column(
        Enum(
            MessageStatus,
            native_enum=False,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=MessageStatus.ACTIVE,
    )
