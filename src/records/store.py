"""Create, read and delete vector records.

Records are addressed two ways: by the derived storage key and, for
points whose key could not be derived from the caller id, by the
``original_id`` kept in the payload.
"""

from datetime import UTC, datetime

from src.exceptions import DimensionMismatchError, ValidationError, VectorStoreError
from src.identity import derive_key
from src.logging_config import get_logger
from src.records.models import (
    PAYLOAD_CREATED_AT,
    PAYLOAD_METADATA,
    PAYLOAD_ORIGINAL_ID,
    PAYLOAD_TEXT,
    VectorRecord,
)
from src.vectorstore.models import StoredPoint, VectorPoint
from src.vectorstore.service import VectorStore

logger = get_logger(__name__)


class VectorRecordStore:
    """Record lifecycle on top of a vector store collection."""

    def __init__(
        self,
        vector_store: VectorStore,
        collection: str,
        dimensions: int,
    ) -> None:
        """Initialize the record store.

        Args:
            vector_store: Backing vector database.
            collection: Collection holding the records.
            dimensions: Required embedding length.
        """
        self._vector_store = vector_store
        self._collection = collection
        self._dimensions = dimensions

    @property
    def collection(self) -> str:
        """Collection name."""
        return self._collection

    @property
    def dimensions(self) -> int:
        """Required embedding length."""
        return self._dimensions

    def check_dimensions(self, vector: list[float], context: str = "Embedding") -> None:
        """Reject vectors whose length differs from the collection dimension.

        Raises:
            DimensionMismatchError: On any length mismatch.
        """
        if len(vector) != self._dimensions:
            raise DimensionMismatchError(self._dimensions, len(vector), context=context)

    def _to_point(self, record: VectorRecord) -> tuple[str, VectorPoint]:
        """Build the point for a record and return it with the caller-facing id."""
        storage_key = derive_key(record.id)
        record_id = record.id or storage_key
        created_at = record.created_at or datetime.now(UTC)

        point = VectorPoint(
            id=storage_key,
            vector=record.embedding,
            payload={
                PAYLOAD_ORIGINAL_ID: record_id,
                PAYLOAD_TEXT: record.text,
                PAYLOAD_METADATA: record.metadata,
                PAYLOAD_CREATED_AT: created_at.isoformat(),
            },
        )
        return record_id, point

    async def store(self, record: VectorRecord) -> str:
        """Store a record, replacing any record with the same id.

        Returns:
            The record id, or the generated key when none was given.

        Raises:
            DimensionMismatchError: If the embedding has the wrong length.
            VectorStoreError: If the write fails.
        """
        self.check_dimensions(record.embedding)
        record_id, point = self._to_point(record)

        try:
            await self._vector_store.upsert(self._collection, [point], wait=True)
        except VectorStoreError as e:
            e.details.setdefault("record_id", record_id)
            raise

        logger.info(
            "Stored vector",
            extra={"record_id": record_id, "storage_key": point.id},
        )
        return record_id

    async def store_batch(self, records: list[VectorRecord]) -> list[str]:
        """Store several records in one write.

        Every embedding is validated before anything is written, so a
        single bad record fails the whole batch.

        Returns:
            Record ids in input order.

        Raises:
            DimensionMismatchError: If any embedding has the wrong length.
            VectorStoreError: If the write fails.
        """
        if not records:
            return []

        for index, record in enumerate(records):
            try:
                self.check_dimensions(record.embedding)
            except DimensionMismatchError as e:
                e.details["index"] = index
                e.details["record_id"] = record.id
                raise

        built = [self._to_point(record) for record in records]
        ids = [record_id for record_id, _ in built]

        try:
            await self._vector_store.upsert(
                self._collection,
                [point for _, point in built],
                wait=True,
            )
        except VectorStoreError as e:
            e.details.setdefault("batch_size", len(records))
            raise

        logger.info(f"Stored {len(ids)} vectors", extra={"collection": self._collection})
        return ids

    async def _resolve(self, record_id: str, with_vectors: bool) -> StoredPoint | None:
        """Find the point for a record id.

        Tries the derived key first, then scans the payload for the
        original id unless the id already was a native key.
        """
        if not record_id:
            raise ValidationError("Record id cannot be empty")

        storage_key = derive_key(record_id)

        try:
            points = await self._vector_store.retrieve(
                self._collection,
                [storage_key],
                with_vectors=with_vectors,
            )
            if points:
                return points[0]

            if storage_key == record_id:
                return None

            logger.debug(
                "Key lookup missed, scanning by original id",
                extra={"record_id": record_id},
            )
            matches = await self._vector_store.scroll(
                self._collection,
                filters={PAYLOAD_ORIGINAL_ID: record_id},
                limit=1,
                with_vectors=with_vectors,
            )
        except VectorStoreError as e:
            e.details.setdefault("record_id", record_id)
            raise

        return matches[0] if matches else None

    async def resolve_key(self, record_id: str) -> str | None:
        """Return the storage key holding ``record_id``, or None."""
        point = await self._resolve(record_id, with_vectors=False)
        return point.id if point else None

    async def get(self, record_id: str) -> VectorRecord | None:
        """Fetch a record by its id or storage key.

        Returns:
            The record, or None if it does not exist.
        """
        point = await self._resolve(record_id, with_vectors=True)
        if point is None:
            logger.debug("Vector not found", extra={"record_id": record_id})
            return None

        payload = point.payload
        return VectorRecord(
            id=payload.get(PAYLOAD_ORIGINAL_ID) or point.id,
            storage_key=point.id,
            text=payload.get(PAYLOAD_TEXT) or "",
            embedding=point.vector or [],
            metadata=payload.get(PAYLOAD_METADATA) or {},
            created_at=payload.get(PAYLOAD_CREATED_AT),
        )

    async def delete(self, record_id: str) -> bool:
        """Delete a record by its id or storage key.

        Returns:
            True if a record was found and removed.
        """
        storage_key = await self.resolve_key(record_id)
        if storage_key is None:
            logger.debug("Vector not found for deletion", extra={"record_id": record_id})
            return False

        try:
            await self._vector_store.delete(self._collection, [storage_key], wait=True)
        except VectorStoreError as e:
            e.details.setdefault("record_id", record_id)
            raise

        logger.info(
            "Deleted vector",
            extra={"record_id": record_id, "storage_key": storage_key},
        )
        return True
