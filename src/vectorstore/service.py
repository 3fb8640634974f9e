"""Vector store interface and Qdrant implementation."""

import time
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from qdrant_client import AsyncQdrantClient
from qdrant_client.http.exceptions import UnexpectedResponse
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PointIdsList,
    PointStruct,
    VectorParams,
)

from src.config import QdrantSettings, get_settings
from src.exceptions import ConfigurationError, ErrorCode, VectorStoreError
from src.logging_config import get_logger
from src.observability.metrics import track_vectorstore_operation
from src.vectorstore.models import (
    CollectionInfo,
    SearchResult,
    StoredPoint,
    VectorPoint,
)

logger = get_logger(__name__)


class VectorStore(ABC):
    """Abstract base class for vector stores.

    Defines the interface for storing, retrieving and searching vectors.
    """

    @abstractmethod
    async def create_collection(self, name: str, dimensions: int) -> None:
        """Create a new collection using cosine distance.

        Raises:
            VectorStoreError: If creation fails or the collection exists.
        """
        ...

    @abstractmethod
    async def ensure_collection(self, name: str, dimensions: int) -> bool:
        """Create the collection if missing and verify its dimension.

        Returns:
            True if the collection was created.

        Raises:
            ConfigurationError: If it exists with another dimension.
            VectorStoreError: If the store cannot be reached.
        """
        ...

    @abstractmethod
    async def collection_exists(self, name: str) -> bool:
        """Check if a collection exists."""
        ...

    @abstractmethod
    async def list_collections(self) -> list[str]:
        """List collection names."""
        ...

    @abstractmethod
    async def get_collection_info(self, name: str) -> CollectionInfo:
        """Get collection metadata."""
        ...

    @abstractmethod
    async def upsert(
        self,
        collection: str,
        points: list[VectorPoint],
        wait: bool = True,
    ) -> int:
        """Insert or replace points.

        Args:
            collection: Collection name.
            points: Points to upsert.
            wait: Block until the write is acknowledged.

        Returns:
            Number of points upserted.
        """
        ...

    @abstractmethod
    async def search(
        self,
        collection: str,
        vector: list[float],
        limit: int = 10,
        score_threshold: float | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """Nearest-neighbour search, ordered by descending score."""
        ...

    @abstractmethod
    async def retrieve(
        self,
        collection: str,
        ids: list[str],
        with_vectors: bool = True,
    ) -> list[StoredPoint]:
        """Fetch points by native key. Missing keys are omitted."""
        ...

    @abstractmethod
    async def scroll(
        self,
        collection: str,
        filters: dict[str, Any],
        limit: int = 10,
        with_vectors: bool = False,
    ) -> list[StoredPoint]:
        """Fetch points whose payload matches every filter value."""
        ...

    @abstractmethod
    async def delete(
        self,
        collection: str,
        ids: list[str],
        wait: bool = True,
    ) -> int:
        """Delete points by native key.

        Returns:
            Number of keys submitted for deletion.
        """
        ...

    async def close(self) -> None:
        """Release client resources."""
        return None


def _build_filter(filters: dict[str, Any] | None) -> Filter | None:
    """Translate equality filters into a Qdrant filter."""
    if not filters:
        return None
    conditions = [
        FieldCondition(key=k, match=MatchValue(value=v))
        for k, v in filters.items()
    ]
    return Filter(must=conditions)  # type: ignore[arg-type]


def _as_vector(raw: Any) -> list[float] | None:
    """Extract a plain vector from a Qdrant record.

    Named-vector collections return a dict; the first vector is used.
    """
    if raw is None:
        return None
    if isinstance(raw, dict):
        if not raw:
            return None
        raw = raw.get("", next(iter(raw.values())))
    return [float(v) for v in raw]


class QdrantVectorStore(VectorStore):
    """Qdrant vector store implementation."""

    def __init__(
        self,
        settings: QdrantSettings | None = None,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        """Initialize Qdrant vector store.

        Args:
            settings: Qdrant configuration.
            client: Existing client (for testing).
        """
        self._settings = settings or get_settings().qdrant
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> AsyncQdrantClient:
        """Get or create Qdrant client.

        Raises:
            ConfigurationError: If the client cannot be built from settings.
        """
        if self._client is None:
            api_key = None
            if self._settings.api_key:
                api_key = self._settings.api_key.get_secret_value()

            try:
                self._client = AsyncQdrantClient(
                    url=self._settings.url,
                    api_key=api_key,
                    timeout=self._settings.timeout,
                )
            except Exception as e:
                raise ConfigurationError(
                    f"Invalid Qdrant configuration: {e}",
                    details={"url": self._settings.url, "error": str(e)},
                ) from e
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    @contextmanager
    def _operation(self, operation: str, **context: Any) -> Iterator[None]:
        """Time a store call and wrap client failures in VectorStoreError."""
        start = time.perf_counter()
        try:
            yield
        except (VectorStoreError, ConfigurationError):
            track_vectorstore_operation(operation, time.perf_counter() - start, success=False)
            raise
        except Exception as e:
            track_vectorstore_operation(operation, time.perf_counter() - start, success=False)
            # Qdrant answers 404 only for a missing collection.
            missing = isinstance(e, UnexpectedResponse) and e.status_code == 404
            raise VectorStoreError(
                f"Failed to {operation.replace('_', ' ')}: {e}",
                code=ErrorCode.COLLECTION_NOT_FOUND if missing else ErrorCode.VECTOR_STORE_ERROR,
                details={**context, "operation": operation, "error": str(e)},
            ) from e
        track_vectorstore_operation(operation, time.perf_counter() - start)

    async def create_collection(self, name: str, dimensions: int) -> None:
        """Create a new Qdrant collection."""
        with self._operation("create_collection", collection=name):
            client = await self._get_client()
            if await client.collection_exists(name):
                raise VectorStoreError(
                    f"Collection already exists: {name}",
                    code=ErrorCode.COLLECTION_EXISTS,
                    details={"collection": name},
                )

            await client.create_collection(
                collection_name=name,
                vectors_config=VectorParams(
                    size=dimensions,
                    distance=Distance.COSINE,
                ),
            )
        logger.info(f"Created collection: {name}", extra={"dimensions": dimensions})

    async def ensure_collection(self, name: str, dimensions: int) -> bool:
        """Create the collection when missing, otherwise verify it."""
        if not await self.collection_exists(name):
            await self.create_collection(name, dimensions)
            return True

        info = await self.get_collection_info(name)
        if info.vector_size is not None and info.vector_size != dimensions:
            raise ConfigurationError(
                f"Collection {name} has dimension {info.vector_size}, expected {dimensions}",
                details={
                    "collection": name,
                    "expected": dimensions,
                    "actual": info.vector_size,
                },
            )

        logger.info(
            f"Collection already exists: {name}",
            extra={"points_count": info.points_count, "status": info.status},
        )
        return False

    async def collection_exists(self, name: str) -> bool:
        """Check if collection exists."""
        with self._operation("collection_exists", collection=name):
            client = await self._get_client()
            return await client.collection_exists(name)

    async def list_collections(self) -> list[str]:
        """List collection names."""
        with self._operation("list_collections"):
            client = await self._get_client()
            response = await client.get_collections()
        return [c.name for c in response.collections]

    async def get_collection_info(self, name: str) -> CollectionInfo:
        """Read collection status, size and vector configuration."""
        with self._operation("get_collection_info", collection=name):
            client = await self._get_client()
            info = await client.get_collection(collection_name=name)

        vector_size = None
        distance = None
        params = info.config.params.vectors if info.config else None
        if isinstance(params, dict):
            params = next(iter(params.values()), None)
        if params is not None:
            vector_size = params.size
            distance = getattr(params.distance, "value", params.distance)

        status = getattr(info.status, "value", info.status)
        return CollectionInfo(
            name=name,
            points_count=info.points_count or 0,
            status=str(status),
            vector_size=vector_size,
            distance=str(distance) if distance is not None else None,
        )

    async def upsert(
        self,
        collection: str,
        points: list[VectorPoint],
        wait: bool = True,
    ) -> int:
        """Upsert points into collection."""
        if not points:
            return 0

        with self._operation("upsert", collection=collection, count=len(points)):
            client = await self._get_client()
            await client.upsert(
                collection_name=collection,
                points=[
                    PointStruct(id=p.id, vector=p.vector, payload=p.payload)
                    for p in points
                ],
                wait=wait,
            )

        logger.debug(
            f"Upserted {len(points)} points",
            extra={"collection": collection},
        )
        return len(points)

    async def search(
        self,
        collection: str,
        vector: list[float],
        limit: int = 10,
        score_threshold: float | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """Search for similar vectors."""
        with self._operation("search", collection=collection, limit=limit):
            client = await self._get_client()
            response = await client.query_points(
                collection_name=collection,
                query=vector,
                limit=limit,
                score_threshold=score_threshold,
                query_filter=_build_filter(filters),
                with_payload=True,
            )

        return [
            SearchResult(
                id=str(point.id),
                score=point.score if point.score is not None else 0.0,
                payload=dict(point.payload) if point.payload else {},
            )
            for point in response.points
        ]

    async def retrieve(
        self,
        collection: str,
        ids: list[str],
        with_vectors: bool = True,
    ) -> list[StoredPoint]:
        """Retrieve points by key."""
        if not ids:
            return []

        with self._operation("retrieve", collection=collection, ids=ids):
            client = await self._get_client()
            records = await client.retrieve(
                collection_name=collection,
                ids=ids,
                with_payload=True,
                with_vectors=with_vectors,
            )

        return [
            StoredPoint(
                id=str(record.id),
                vector=_as_vector(record.vector) if with_vectors else None,
                payload=dict(record.payload) if record.payload else {},
            )
            for record in records
        ]

    async def scroll(
        self,
        collection: str,
        filters: dict[str, Any],
        limit: int = 10,
        with_vectors: bool = False,
    ) -> list[StoredPoint]:
        """Scan points matching a payload filter."""
        with self._operation("scroll", collection=collection, filters=filters):
            client = await self._get_client()
            records, _next_offset = await client.scroll(
                collection_name=collection,
                scroll_filter=_build_filter(filters),
                limit=limit,
                with_payload=True,
                with_vectors=with_vectors,
            )

        return [
            StoredPoint(
                id=str(record.id),
                vector=_as_vector(record.vector) if with_vectors else None,
                payload=dict(record.payload) if record.payload else {},
            )
            for record in records
        ]

    async def delete(
        self,
        collection: str,
        ids: list[str],
        wait: bool = True,
    ) -> int:
        """Delete points by key."""
        if not ids:
            return 0

        with self._operation("delete", collection=collection, ids=ids):
            client = await self._get_client()
            await client.delete(
                collection_name=collection,
                points_selector=PointIdsList(points=ids),  # type: ignore[arg-type]
                wait=wait,
            )

        logger.debug(
            f"Deleted {len(ids)} points",
            extra={"collection": collection},
        )
        return len(ids)
