"""ORM models."""

from classroom_rag.boundary.db.models.chat_message_model import ChatMessageModel
from classroom_rag.boundary.db.models.document_model import DocumentModel, DocumentStatus
from classroom_rag.boundary.db.models.group_model import GroupModel
from classroom_rag.boundary.db.models.passage_model import PassageModel
from classroom_rag.boundary.db.models.summary_model import DocumentSummaryModel

__all__ = [
    "ChatMessageModel",
    "DocumentModel",
    "DocumentStatus",
    "DocumentSummaryModel",
    "GroupModel",
    "PassageModel",
]
