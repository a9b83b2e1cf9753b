"""
Test suite for the chat history endpoint.

System role: Verification of conversation reload over HTTP
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from classroom_rag.api.deps import get_chat_service, get_lifecycle_service
from classroom_rag.core.exceptions import PersistenceError
from classroom_rag.main import create_app
from classroom_rag.models.chat import ChatHistoryResponse, ChatMessageResponse, MessageStatus


@pytest.fixture
def mock_lifecycle() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def mock_chat_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def client(mock_lifecycle, mock_chat_service) -> TestClient:
    app = create_app(use_lifespan=False)
    app.dependency_overrides[get_lifecycle_service] = lambda: mock_lifecycle
    app.dependency_overrides[get_chat_service] = lambda: mock_chat_service
    return TestClient(app)


def test_should_return_conversation(client, mock_lifecycle, group_id, requester_id) -> None:
    # Arrange
    message = ChatMessageResponse(
        id=uuid.uuid4(),
        group_id=group_id,
        owner_id=requester_id,
        author_id=requester_id,
        is_ai=False,
        content="What is a lexer?",
        status=MessageStatus.ACTIVE,
        created_at=datetime(2026, 3, 2, tzinfo=timezone.utc),
    )
    mock_lifecycle.history.return_value = ChatHistoryResponse(messages=[message], total=1, recovered=2)

    # Act
    response = client.get(f"/api/v1/groups/{group_id}/chat/history", params={"requester_id": str(requester_id)})

    # Assert
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["recovered"] == 2
    assert body["messages"][0]["content"] == "What is a lexer?"
    assert body["messages"][0]["status"] == "active"
    mock_lifecycle.history.assert_awaited_once_with(group_id, requester_id)


def test_requester_is_required(client, group_id) -> None:
    response = client.get(f"/api/v1/groups/{group_id}/chat/history")

    assert response.status_code == 422


def test_unavailable_history_should_return_503(client, mock_lifecycle, group_id, requester_id) -> None:
    mock_lifecycle.history.side_effect = PersistenceError("Failed to load chat history")

    response = client.get(f"/api/v1/groups/{group_id}/chat/history", params={"requester_id": str(requester_id)})

    assert response.status_code == 503


class TestCancelMessage:
    """Test suite for cancelling an answer over HTTP."""

    def test_generating_message_should_be_cancelled(self, client, mock_chat_service, group_id) -> None:
        # Arrange
        message_id = uuid.uuid4()
        mock_chat_service.stop.return_value = True

        # Act
        response = client.post(f"/api/v1/groups/{group_id}/chat/messages/{message_id}/cancel")

        # Assert
        assert response.status_code == 200
        assert response.json() == {"message_id": str(message_id), "cancelled": True}
        mock_chat_service.stop.assert_awaited_once_with(message_id, group_id=group_id)

    def test_message_not_generating_should_return_404(self, client, mock_chat_service, group_id) -> None:
        mock_chat_service.stop.return_value = False

        response = client.post(f"/api/v1/groups/{group_id}/chat/messages/{uuid.uuid4()}/cancel")

        assert response.status_code == 404
