"""
Application services.

Orchestrate core logic and boundary adapters for indexing, summaries,
context assembly, answer streaming and message lifecycle.
"""

from classroom_rag.application.services.chat_service import ChatService, EventSink
from classroom_rag.application.services.context_service import ContextAssembler
from classroom_rag.application.services.indexing_service import IndexingService
from classroom_rag.application.services.message_lifecycle_service import MessageLifecycleService
from classroom_rag.application.services.summary_service import SummaryService

__all__ = [
    "ChatService",
    "ContextAssembler",
    "EventSink",
    "IndexingService",
    "MessageLifecycleService",
    "SummaryService",
]
