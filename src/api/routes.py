"""API routes for embedding storage and similarity queries."""

from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.exceptions import NotFoundError, NotInitializedError
from src.logging_config import get_logger
from src.memory.models import ItemOutcome, StoreItem
from src.memory.service import VectorMemoryService
from src.retrieval.models import SearchResponse, SimilarityResult

logger = get_logger(__name__)


router = APIRouter(prefix="/api/v1")


def get_service(request: Request) -> VectorMemoryService:
    """Resolve the service attached to the application."""
    service: VectorMemoryService | None = getattr(request.app.state, "service", None)
    if service is None:
        raise NotInitializedError("Vector memory service not configured")
    return service


class EmbedRequest(BaseModel):
    """Request body for storing one text."""

    text: str = Field(min_length=1, description="Text to embed")
    id: str | None = Field(default=None, description="Optional record id")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional metadata",
    )


class EmbedResponse(BaseModel):
    """A stored record."""

    id: str = Field(description="Record id")
    text: str = Field(description="Stored text")
    embedding: list[float] = Field(description="Embedding vector")
    metadata: dict[str, Any] = Field(default_factory=dict)
    success: bool = True


class BatchEmbedRequest(BaseModel):
    """Request body for storing several texts."""

    items: list[StoreItem] = Field(min_length=1, description="Texts to store")


class BatchEmbedResponse(BaseModel):
    """Per-item outcome of a batch store."""

    results: list[ItemOutcome]
    processed: int
    succeeded: int
    success: bool


class QueryRequest(BaseModel):
    """Request body for a text similarity query.

    Limits above the server ceiling and negative thresholds are clamped.
    """

    query: str = Field(min_length=1, description="Query text")
    limit: int | None = Field(default=None, ge=1, description="Maximum results")
    threshold: float | None = Field(
        default=None,
        le=1.0,
        description="Minimum similarity score",
    )


class SimilarRequest(BaseModel):
    """Optional body for a similar-to query."""

    limit: int | None = Field(default=None, ge=1, description="Maximum results")
    threshold: float | None = Field(
        default=None,
        le=1.0,
        description="Minimum similarity score",
    )


class QueryResponse(BaseModel):
    """Ranked similarity results."""

    results: list[SimilarityResult]
    query: str
    success: bool


class DeleteResponse(BaseModel):
    """Result of a delete."""

    success: bool
    message: str


@router.post(
    "/embed",
    response_model=EmbedResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Embeddings"],
)
async def embed_endpoint(
    request: EmbedRequest,
    service: VectorMemoryService = Depends(get_service),
) -> EmbedResponse:
    """Embed a text and store it."""
    record = await service.store_text(request.text, request.id, request.metadata)
    return EmbedResponse(
        id=record.id or "",
        text=record.text,
        embedding=record.embedding,
        metadata=record.metadata,
    )


@router.post(
    "/embed/batch",
    response_model=BatchEmbedResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Embeddings"],
)
async def embed_batch_endpoint(
    request: BatchEmbedRequest,
    service: VectorMemoryService = Depends(get_service),
) -> BatchEmbedResponse:
    """Embed and store several texts, reporting each item."""
    result = await service.store_texts(request.items)
    return BatchEmbedResponse(
        results=result.results,
        processed=result.processed,
        succeeded=result.succeeded,
        success=True,
    )


@router.get("/embed/{record_id}", response_model=EmbedResponse, tags=["Embeddings"])
async def get_embedding_endpoint(
    record_id: str,
    service: VectorMemoryService = Depends(get_service),
) -> EmbedResponse:
    """Fetch a stored record."""
    record = await service.get(record_id)
    if record is None:
        logger.info("Vector not found", extra={"record_id": record_id})
        raise NotFoundError("Vector not found", details={"id": record_id})
    return EmbedResponse(
        id=record.id or record_id,
        text=record.text,
        embedding=record.embedding,
        metadata=record.metadata,
    )


@router.delete("/embed/{record_id}", response_model=DeleteResponse, tags=["Embeddings"])
async def delete_embedding_endpoint(
    record_id: str,
    service: VectorMemoryService = Depends(get_service),
) -> DeleteResponse:
    """Delete a stored record."""
    if not await service.delete(record_id):
        logger.info("Vector not found for deletion", extra={"record_id": record_id})
        raise NotFoundError("Vector not found", details={"id": record_id})
    return DeleteResponse(success=True, message=f"Vector {record_id} deleted successfully")


@router.post("/query", response_model=QueryResponse, tags=["Query"])
async def query_endpoint(
    request: QueryRequest,
    service: VectorMemoryService = Depends(get_service),
) -> QueryResponse:
    """Search stored texts similar to the query text."""
    response = await service.search(request.query, request.limit, request.threshold)
    return search_response_to_query_response(response)


@router.post("/query/similar/{record_id}", response_model=QueryResponse, tags=["Query"])
async def similar_endpoint(
    record_id: str,
    request: SimilarRequest | None = None,
    service: VectorMemoryService = Depends(get_service),
) -> Any:
    """Search stored texts similar to an existing record."""
    request = request or SimilarRequest()
    response = await service.search_similar_to(record_id, request.limit, request.threshold)
    body = search_response_to_query_response(response)
    if not response.success:
        logger.info("Reference vector not found", extra={"record_id": record_id})
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=body.model_dump(),
        )
    return body


@router.get("/query/stats", tags=["Query"])
async def stats_endpoint(
    service: VectorMemoryService = Depends(get_service),
) -> dict[str, Any]:
    """Collection statistics."""
    info = await service.stats()
    return {**info.model_dump(), "success": True}


@router.get("/query/health", tags=["Query"])
async def query_health_endpoint(request: Request) -> JSONResponse:
    """Component health of the vector service."""
    service: VectorMemoryService | None = getattr(request.app.state, "service", None)
    if service is None:
        services = {"vector_database": False, "embedding_model": False}
    else:
        services = await service.health_details()

    healthy = all(services.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"healthy": healthy, "services": services},
    )


def search_response_to_query_response(response: SearchResponse) -> QueryResponse:
    """Convert internal SearchResponse to API QueryResponse."""
    return QueryResponse(
        results=response.results,
        query=response.query,
        success=response.success,
    )
