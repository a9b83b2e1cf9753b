"""
Test suite for document indexing endpoints.

System role: Verification of indexing HTTP API
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from classroom_rag.api.deps import get_indexing_service
from classroom_rag.core.exceptions import DocumentNotFoundError
from classroom_rag.main import create_app
from classroom_rag.models.document import IndexingResult


@pytest.fixture
def mock_indexing() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def client(mock_indexing) -> TestClient:
    app = create_app(use_lifespan=False)
    app.dependency_overrides[get_indexing_service] = lambda: mock_indexing
    return TestClient(app)


def test_index_should_pass_supplied_text(client, mock_indexing) -> None:
    # Arrange
    document_id = uuid.uuid4()
    mock_indexing.index_document.return_value = IndexingResult(
        document_id=document_id, success=True, passages_total=2, passages_stored=2
    )

    # Act
    response = client.post(f"/api/v1/documents/{document_id}/index", json={"text": "Extracted text"})

    # Assert
    assert response.status_code == 200
    assert response.json()["passages_stored"] == 2
    mock_indexing.index_document.assert_awaited_once_with(document_id, "Extracted text")


def test_index_without_body_should_use_stored_content(client, mock_indexing) -> None:
    document_id = uuid.uuid4()
    mock_indexing.index_document.return_value = IndexingResult(document_id=document_id, success=True)

    response = client.post(f"/api/v1/documents/{document_id}/index")

    assert response.status_code == 200
    mock_indexing.index_document.assert_awaited_once_with(document_id, None)


def test_index_unknown_document_should_return_404(client, mock_indexing) -> None:
    document_id = uuid.uuid4()
    mock_indexing.index_document.side_effect = DocumentNotFoundError(str(document_id))

    response = client.post(f"/api/v1/documents/{document_id}/index")

    assert response.status_code == 404


def test_reindex_should_return_result(client, mock_indexing) -> None:
    document_id = uuid.uuid4()
    mock_indexing.reindex_document.return_value = IndexingResult(document_id=document_id, success=True)

    response = client.post(f"/api/v1/documents/{document_id}/reindex")

    assert response.status_code == 200
    assert response.json()["success"] is True
    mock_indexing.reindex_document.assert_awaited_once_with(document_id)
