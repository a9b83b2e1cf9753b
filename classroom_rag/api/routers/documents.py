"""
Document indexing API endpoints.

Upload and text extraction happen elsewhere; these routes (re)build the
passage and summary index for a stored document.

Routes: POST /documents/{document_id}/index, POST /documents/{document_id}/reindex

Dependencies: fastapi, classroom_rag.application.services
System role: Indexing HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, status

from classroom_rag.api.deps import get_indexing_service
from classroom_rag.application.services import IndexingService
from classroom_rag.core.exceptions import DocumentNotFoundError
from classroom_rag.models.document import IndexDocumentRequest, IndexingResult

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("/{document_id}/index", response_model=IndexingResult)
async def index_document(
    document_id: UUID,
    request: IndexDocumentRequest | None = Body(default=None),
    indexing: IndexingService = Depends(get_indexing_service),
) -> IndexingResult:
    """
    Index a document from supplied text or its stored content.

    Raises:
        HTTPException: 404 if the document does not exist
    """
    try:
        return await indexing.index_document(document_id, request.text if request else None)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e


@router.post("/{document_id}/reindex", response_model=IndexingResult)
async def reindex_document(
    document_id: UUID,
    indexing: IndexingService = Depends(get_indexing_service),
) -> IndexingResult:
    """
    Drop and rebuild a document's passages and summary.

    Raises:
        HTTPException: 404 if the document does not exist
    """
    try:
        return await indexing.reindex_document(document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
