"""
Chat history API endpoint.

Routes: GET /groups/{group_id}/chat/history, POST /groups/{group_id}/chat/messages/{message_id}/cancel

Dependencies: fastapi, classroom_rag.application.services
System role: Conversation reload and answer cancellation over HTTP
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from classroom_rag.api.deps import get_chat_service, get_lifecycle_service
from classroom_rag.application.services import ChatService, MessageLifecycleService
from classroom_rag.core.exceptions import PersistenceError
from classroom_rag.models.chat import CancelMessageResponse, ChatHistoryResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/groups", tags=["chat"])


@router.get("/{group_id}/chat/history", response_model=ChatHistoryResponse)
async def get_chat_history(
    group_id: UUID,
    requester_id: UUID = Query(..., description="Owner of the private conversation"),
    lifecycle: MessageLifecycleService = Depends(get_lifecycle_service),
) -> ChatHistoryResponse:
    """
    Return the requester's conversation in a group, oldest first.

    Abandoned `generating` messages are cancelled before the read.

    Raises:
        HTTPException: 503 if history cannot be loaded
    """
    try:
        return await lifecycle.history(group_id, requester_id)
    except PersistenceError as e:
        logger.error(
            "Chat history unavailable",
            extra={"group_id": str(group_id), "error_msg": e.message},
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Chat history is temporarily unavailable",
        ) from e


@router.post("/{group_id}/chat/messages/{message_id}/cancel", response_model=CancelMessageResponse)
async def cancel_message(
    group_id: UUID,
    message_id: UUID,
    chat_service: ChatService = Depends(get_chat_service),
) -> CancelMessageResponse:
    """
    Stop an answer that is still generating.

    The coordinator persists the partial text as cancelled and closes the
    stream on the requester's connection.

    Raises:
        HTTPException: 404 if the message is not generating in this group
    """
    cancelled = await chat_service.stop(message_id, group_id=group_id)
    if not cancelled:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Message not found or not cancellable",
        )

    logger.info(
        "Answer cancelled over HTTP",
        extra={"group_id": str(group_id), "message_id": str(message_id)},
    )
    return CancelMessageResponse(message_id=message_id, cancelled=True)
