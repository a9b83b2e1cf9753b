"""
Chat domain models and schemas.

Dependencies: pydantic
System role: Chat API contracts
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MessageStatus(str, Enum):
    """
    Chat message lifecycle states.

    GENERATING: Assistant placeholder, content empty or partial
    ACTIVE: Completed normally (or recovered with fallback text)
    CANCELLED: Interrupted; content is whatever was produced before the stop
    """

    GENERATING = "generating"
    ACTIVE = "active"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not MessageStatus.GENERATING

    def can_transition_to(self, target: "MessageStatus") -> bool:
        """Only generating -> active and generating -> cancelled are allowed."""
        return self is MessageStatus.GENERATING and target.is_terminal


class ChatMessageResponse(BaseModel):
    """Single chat message in history."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    group_id: UUID
    owner_id: UUID
    author_id: UUID | None = None
    is_ai: bool
    content: str
    status: MessageStatus
    created_at: datetime


class ChatHistoryResponse(BaseModel):
    """Response schema for chat history."""

    messages: list[ChatMessageResponse]
    total: int = Field(description="Number of messages returned")
    recovered: int = Field(default=0, description="Stale generating messages cancelled by this read")


class CancelMessageResponse(BaseModel):
    """Response schema for cancelling an in-flight answer."""

    message_id: UUID
    cancelled: bool
