"""
WebSocket streaming chat endpoint.

Binds the requester's connection to the generation coordinator: `ask`
starts an answer as its own task so the receive loop keeps reading `stop`
and `ping` while tokens stream out. Closing the connection cancels any
answer this connection started; its partial text is persisted as cancelled.

Routes: WS /ws/groups/{group_id}/chat?requester_id=...

Dependencies: fastapi, classroom_rag.application.services.chat_service
System role: WebSocket transport binding
"""

import asyncio
import json
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from classroom_rag.api.deps import get_chat_service
from classroom_rag.application.services.chat_service import ChatService
from classroom_rag.core.exceptions import GenerationInProgressError
from classroom_rag.models.streaming import ClientAskEvent, ClientEventType, StreamEvent, StreamEventType

logger = logging.getLogger(__name__)
router = APIRouter(tags=["streaming"])


class WebSocketTransport:
    """EventSink writing JSON events to one WebSocket, one message at a time."""

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._lock = asyncio.Lock()

    async def send(self, event: StreamEvent) -> None:
        async with self._lock:
            await self._websocket.send_json(event.to_dict())


async def _run_answer(
    chat_service: ChatService,
    transport: WebSocketTransport,
    group_id: UUID,
    requester_id: UUID,
    question: str,
) -> None:
    try:
        await chat_service.answer(group_id, requester_id, question, transport)
    except GenerationInProgressError as e:
        await transport.send(StreamEvent.error("GENERATION_IN_PROGRESS", e.message))


@router.websocket("/ws/groups/{group_id}/chat")
async def websocket_chat(
    websocket: WebSocket,
    group_id: UUID,
    requester_id: UUID,
    chat_service: ChatService = Depends(get_chat_service),
) -> None:
    """
    WebSocket endpoint for streaming answers.

    Client sends:
        {"event": "ask", "data": {"question": "..."}}
        {"event": "stop"}
        {"event": "ping"}

    Server sends:
        {"event": "connected", "data": {"group_id": "...", "requester_id": "..."}}
        {"event": "generation_started", "data": {"message_id": "..."}}
        {"event": "generation_chunk", "data": {"message_id": "...", "text": "..."}}
        {"event": "generation_ended", "data": {"message_id": "...", "reason": "...", "cancelled": false, "sources_used": [...]}}
        {"event": "error", "data": {"code": "...", "message": "..."}}
        {"event": "pong", "data": {}}

    Args:
        websocket: WebSocket connection
        group_id: Group UUID from path
        requester_id: Authenticated requester (membership checked upstream)
        chat_service: Generation coordinator
    """
    await websocket.accept()
    logger.info(
        "WebSocket connection established",
        extra={"group_id": str(group_id), "requester_id": str(requester_id)},
    )

    transport = WebSocketTransport(websocket)
    tasks: set[asyncio.Task] = set()

    await transport.send(
        StreamEvent(
            event=StreamEventType.CONNECTED,
            data={"group_id": str(group_id), "requester_id": str(requester_id)},
        )
    )

    try:
        while True:
            raw_data = await websocket.receive_text()

            try:
                data = json.loads(raw_data)
            except json.JSONDecodeError as e:
                logger.warning(
                    "Failed to parse JSON",
                    extra={"group_id": str(group_id), "error_msg": str(e), "raw_data_preview": raw_data[:50]},
                )
                await transport.send(StreamEvent.error("INVALID_JSON", "Invalid JSON format"))
                continue

            if not isinstance(data, dict):
                await transport.send(StreamEvent.error("INVALID_EVENT", "Event must be a JSON object"))
                continue

            event_type = data.get("event")

            if event_type == ClientEventType.PING.value:
                await transport.send(StreamEvent(event=StreamEventType.PONG, data={}))

            elif event_type == ClientEventType.ASK.value:
                try:
                    ask = ClientAskEvent.model_validate(data.get("data") or {})
                except ValidationError:
                    await transport.send(StreamEvent.error("MISSING_QUESTION", "A non-empty question is required"))
                    continue

                task = asyncio.create_task(
                    _run_answer(chat_service, transport, group_id, requester_id, ask.question)
                )
                tasks.add(task)
                task.add_done_callback(tasks.discard)

            elif event_type == ClientEventType.STOP.value:
                stopped = chat_service.sessions.cancel_conversation(group_id, requester_id)
                logger.info(
                    "Stop requested",
                    extra={"group_id": str(group_id), "message_id": str(stopped) if stopped else None},
                )

            else:
                logger.warning(
                    "Unknown event type received",
                    extra={"group_id": str(group_id), "event_type": str(event_type)},
                )
                await transport.send(StreamEvent.error("UNKNOWN_EVENT", f"Unknown event type: {event_type}"))

    except WebSocketDisconnect:
        logger.info(
            "WebSocket client disconnected",
            extra={"group_id": str(group_id), "requester_id": str(requester_id)},
        )
    finally:
        # Answers started on this connection only
        pending = list(tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
