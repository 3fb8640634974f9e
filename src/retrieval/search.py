"""Threshold and limit bounded nearest-vector search."""

import math

from src.exceptions import ValidationError
from src.logging_config import get_logger
from src.observability.metrics import track_search_request
from src.records.models import PAYLOAD_METADATA, PAYLOAD_ORIGINAL_ID, PAYLOAD_TEXT
from src.records.store import VectorRecordStore
from src.retrieval.models import SearchResponse, SimilarityResult
from src.vectorstore.service import VectorStore

logger = get_logger(__name__)

DEFAULT_MAX_LIMIT = 100
_PREVIEW_CHARS = 100


class SimilaritySearch:
    """Cosine similarity search over the record collection.

    Out-of-range limits and thresholds are clamped rather than rejected:
    ``limit`` to at most ``max_limit`` and ``threshold`` to at least 0.0.
    A NaN or infinite threshold counts as 0.0.
    """

    def __init__(
        self,
        vector_store: VectorStore,
        records: VectorRecordStore,
        max_limit: int = DEFAULT_MAX_LIMIT,
    ) -> None:
        """Initialize the search component.

        Args:
            vector_store: Backing vector database.
            records: Record store sharing the same collection.
            max_limit: Ceiling for caller-supplied limits.
        """
        self._vector_store = vector_store
        self._records = records
        self._max_limit = max_limit

    def clamp(self, limit: int, threshold: float) -> tuple[int, float]:
        """Bring caller parameters into range.

        Raises:
            ValidationError: If ``limit`` is below 1.
        """
        if limit < 1:
            raise ValidationError(
                f"Limit must be at least 1, got {limit}",
                details={"limit": limit},
            )
        if not math.isfinite(threshold):
            threshold = 0.0
        return min(limit, self._max_limit), max(threshold, 0.0)

    async def _query(
        self,
        vector: list[float],
        limit: int,
        threshold: float,
    ) -> list[SimilarityResult]:
        hits = await self._vector_store.search(
            self._records.collection,
            vector=vector,
            limit=limit,
            score_threshold=threshold,
        )
        results = [
            SimilarityResult(
                id=hit.payload.get(PAYLOAD_ORIGINAL_ID) or hit.id,
                text=hit.payload.get(PAYLOAD_TEXT) or "",
                score=hit.score,
                metadata=hit.payload.get(PAYLOAD_METADATA) or {},
            )
            for hit in hits
        ]
        results.sort(key=lambda r: r.score, reverse=True)
        return results

    async def search(
        self,
        vector: list[float],
        limit: int = 10,
        threshold: float = 0.0,
    ) -> list[SimilarityResult]:
        """Find the records nearest to ``vector``.

        Args:
            vector: Query vector of the collection dimension.
            limit: Maximum number of results.
            threshold: Minimum similarity score.

        Returns:
            Results ordered by descending score.

        Raises:
            DimensionMismatchError: If the vector has the wrong length.
            ValidationError: If ``limit`` is below 1.
        """
        self._records.check_dimensions(vector, context="Query vector")
        limit, threshold = self.clamp(limit, threshold)

        logger.debug(
            "Searching for similar vectors",
            extra={"limit": limit, "threshold": threshold},
        )
        results = await self._query(vector, limit, threshold)

        track_search_request(len(results), results[0].score if results else 0.0)
        logger.debug(f"Found {len(results)} similar vectors")
        return results

    async def search_similar_to(
        self,
        record_id: str,
        limit: int = 10,
        threshold: float = 0.0,
    ) -> SearchResponse:
        """Find records similar to a stored record, excluding itself.

        Returns:
            An unsuccessful empty response if the record does not exist.
        """
        limit, threshold = self.clamp(limit, threshold)

        record = await self._records.get(record_id)
        if record is None:
            return SearchResponse(
                results=[],
                query=f"Vector with ID: {record_id}",
                success=False,
            )

        self._records.check_dimensions(record.embedding, context="Stored vector")

        # One extra slot so the record itself does not crowd out a result.
        hits = await self._query(record.embedding, limit + 1, threshold)
        own_ids = {record_id, record.id, record.storage_key}
        results = [hit for hit in hits if hit.id not in own_ids][:limit]

        track_search_request(len(results), results[0].score if results else 0.0)
        return SearchResponse(
            results=results,
            query=f"Similar to: {record.text[:_PREVIEW_CHARS]}",
            success=True,
        )
