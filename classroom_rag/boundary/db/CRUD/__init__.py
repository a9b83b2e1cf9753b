"""
CRUD operations for database models.

Exports model-specific CRUD classes with pre-instantiated singletons.

Usage:
    from classroom_rag.boundary.db.CRUD import chat_message_crud

    rows = await chat_message_crud.list_history(db, group_id, owner_id)
"""

from classroom_rag.boundary.db.CRUD.base_crud import BaseCRUD
from classroom_rag.boundary.db.CRUD.chat_message_crud import ChatMessageCRUD, chat_message_crud
from classroom_rag.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from classroom_rag.boundary.db.CRUD.group_crud import GroupCRUD, group_crud
from classroom_rag.boundary.db.CRUD.passage_crud import PassageCRUD, passage_crud
from classroom_rag.boundary.db.CRUD.summary_crud import DocumentSummaryCRUD, summary_crud

__all__ = [
    "BaseCRUD",
    "ChatMessageCRUD",
    "chat_message_crud",
    "DocumentCRUD",
    "document_crud",
    "GroupCRUD",
    "group_crud",
    "PassageCRUD",
    "passage_crud",
    "DocumentSummaryCRUD",
    "summary_crud",
]
