"""Text vector memory service.

Ties the embedding orchestrator, record store and similarity search
together behind one interface. Nothing is served until initialize()
has loaded the model and verified the collection.
"""

from datetime import UTC, datetime
from typing import Any

from src.config import Settings, get_settings
from src.embeddings.generators import build_generator
from src.embeddings.service import EmbeddingOrchestrator
from src.exceptions import NotInitializedError, VectorServiceError
from src.identity import derive_key
from src.logging_config import get_logger
from src.memory.models import BatchStoreResult, ItemOutcome, StoreItem
from src.records.models import VectorRecord
from src.records.store import VectorRecordStore
from src.retrieval.models import SearchResponse
from src.retrieval.search import SimilaritySearch
from src.vectorstore.models import CollectionInfo
from src.vectorstore.service import QdrantVectorStore, VectorStore

logger = get_logger(__name__)


class VectorMemoryService:
    """Store texts as vectors and query them by similarity."""

    def __init__(
        self,
        embeddings: EmbeddingOrchestrator,
        vector_store: VectorStore,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            embeddings: Text to vector orchestrator.
            vector_store: Backing vector database.
            settings: Application settings. Uses defaults if not provided.
        """
        self._settings = settings or get_settings()
        self._embeddings = embeddings
        self._vector_store = vector_store
        self._records = VectorRecordStore(
            vector_store,
            collection=self._settings.qdrant.collection_name,
            dimensions=self._settings.qdrant.vector_size,
        )
        self._search = SimilaritySearch(
            vector_store,
            self._records,
            max_limit=self._settings.search.max_limit,
        )
        self._initialized = False

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "VectorMemoryService":
        """Build the service with the configured generator and Qdrant store."""
        settings = settings or get_settings()
        return cls(
            embeddings=EmbeddingOrchestrator(build_generator(settings.embedding)),
            vector_store=QdrantVectorStore(settings=settings.qdrant),
            settings=settings,
        )

    @property
    def is_initialized(self) -> bool:
        """Whether initialize() has completed."""
        return self._initialized

    @property
    def embeddings(self) -> EmbeddingOrchestrator:
        """The embedding orchestrator."""
        return self._embeddings

    async def initialize(self) -> None:
        """Load the embedding model and prepare the collection.

        Raises:
            EmbeddingError: If the model cannot be loaded.
            ConfigurationError: If the collection has another dimension.
            VectorStoreError: If the vector store is unreachable.
        """
        if self._initialized:
            return

        await self._embeddings.initialize()

        collection = self._settings.qdrant.collection_name
        created = await self._vector_store.ensure_collection(
            collection,
            self._settings.qdrant.vector_size,
        )
        self._initialized = True
        logger.info(
            "Vector memory service initialized",
            extra={"collection": collection, "collection_created": created},
        )

    async def close(self) -> None:
        """Release collaborator resources."""
        await self._embeddings.close()
        await self._vector_store.close()
        self._initialized = False

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise NotInitializedError()

    async def store(self, record: VectorRecord) -> str:
        """Store a record with a precomputed embedding."""
        self._require_initialized()
        return await self._records.store(record)

    async def store_batch(self, records: list[VectorRecord]) -> list[str]:
        """Store several records with precomputed embeddings."""
        self._require_initialized()
        return await self._records.store_batch(records)

    async def store_text(
        self,
        text: str,
        record_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> VectorRecord:
        """Embed a text and store it.

        Returns:
            The stored record, including its id and embedding.
        """
        self._require_initialized()
        embedding = await self._embeddings.generate(text)
        record = VectorRecord(
            id=record_id,
            text=text,
            embedding=embedding,
            metadata=metadata or {},
            created_at=datetime.now(UTC),
        )
        stored_id = await self._records.store(record)
        return record.model_copy(
            update={"id": stored_id, "storage_key": derive_key(stored_id)}
        )

    async def store_texts(self, items: list[StoreItem]) -> BatchStoreResult:
        """Embed and store several texts.

        Items with empty text are reported as failed and skipped. The
        remaining items are embedded in order and written in one batch;
        an embedding or storage failure aborts the whole call.
        """
        self._require_initialized()

        outcomes: dict[int, ItemOutcome] = {}
        accepted: list[tuple[int, StoreItem]] = []
        for index, item in enumerate(items):
            if not item.text.strip():
                outcomes[index] = ItemOutcome(
                    index=index,
                    id=item.id,
                    success=False,
                    error="Input text cannot be empty",
                )
            else:
                accepted.append((index, item))

        if accepted:
            vectors = await self._embeddings.generate_batch(
                [item.text for _, item in accepted]
            )
            now = datetime.now(UTC)
            records = [
                VectorRecord(
                    id=item.id,
                    text=item.text,
                    embedding=vector,
                    metadata=item.metadata,
                    created_at=now,
                )
                for (_, item), vector in zip(accepted, vectors, strict=True)
            ]
            ids = await self._records.store_batch(records)
            for (index, _), stored_id in zip(accepted, ids, strict=True):
                outcomes[index] = ItemOutcome(index=index, id=stored_id, success=True)

        result = BatchStoreResult(results=[outcomes[i] for i in range(len(items))])
        logger.info(
            "Batch store completed",
            extra={"processed": result.processed, "succeeded": result.succeeded},
        )
        return result

    async def get(self, record_id: str) -> VectorRecord | None:
        """Fetch a record by id or storage key."""
        self._require_initialized()
        return await self._records.get(record_id)

    async def delete(self, record_id: str) -> bool:
        """Delete a record by id or storage key."""
        self._require_initialized()
        return await self._records.delete(record_id)

    async def search(
        self,
        query: str,
        limit: int | None = None,
        threshold: float | None = None,
    ) -> SearchResponse:
        """Find stored texts similar to ``query``."""
        self._require_initialized()
        search_settings = self._settings.search
        vector = await self._embeddings.generate(query)
        results = await self._search.search(
            vector,
            limit=limit if limit is not None else search_settings.default_limit,
            threshold=threshold if threshold is not None else search_settings.default_threshold,
        )
        return SearchResponse(results=results, query=query, success=True)

    async def search_similar_to(
        self,
        record_id: str,
        limit: int | None = None,
        threshold: float | None = None,
    ) -> SearchResponse:
        """Find stored texts similar to an existing record, excluding it."""
        self._require_initialized()
        search_settings = self._settings.search
        return await self._search.search_similar_to(
            record_id,
            limit=limit if limit is not None else search_settings.default_limit,
            threshold=threshold if threshold is not None else search_settings.default_threshold,
        )

    async def stats(self) -> CollectionInfo:
        """Collection statistics."""
        self._require_initialized()
        return await self._vector_store.get_collection_info(self._records.collection)

    async def health_details(self) -> dict[str, bool]:
        """Per-component health."""
        try:
            await self._vector_store.list_collections()
            vector_ok = True
        except VectorServiceError as e:
            logger.warning(f"Vector store health check failed: {e.message}")
            vector_ok = False

        return {
            "vector_database": vector_ok,
            "embedding_model": self._embeddings.is_initialized,
        }

    async def health_check(self) -> bool:
        """True when the vector store answers and the model is loaded."""
        return all((await self.health_details()).values())
