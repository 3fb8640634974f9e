"""Tests for vector store module."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from qdrant_client.http.exceptions import UnexpectedResponse
from qdrant_client.models import Distance, PointIdsList

from src.config import QdrantSettings
from src.exceptions import ConfigurationError, ErrorCode, VectorStoreError
from src.vectorstore.models import StoredPoint, VectorPoint
from src.vectorstore.service import QdrantVectorStore


def _collection_info(size: int = 384, points: int = 3) -> SimpleNamespace:
    """Shape of qdrant_client's CollectionInfo as read by the store."""
    return SimpleNamespace(
        status=SimpleNamespace(value="green"),
        points_count=points,
        config=SimpleNamespace(
            params=SimpleNamespace(
                vectors=SimpleNamespace(size=size, distance=Distance.COSINE),
            )
        ),
    )


class TestVectorPoint:
    """Tests for VectorPoint model."""

    def test_create_point(self) -> None:
        """Point can be created with required fields."""
        point = VectorPoint(id="test-id", vector=[0.1, 0.2, 0.3])
        assert point.id == "test-id"
        assert point.payload == {}

    def test_stored_point_without_vector(self) -> None:
        """Stored points may omit the vector."""
        point = StoredPoint(id="test-id", payload={"text": "hello"})
        assert point.vector is None


class TestQdrantVectorStore:
    """Tests for QdrantVectorStore."""

    def _create_mock_client(self) -> AsyncMock:
        """Create a mock Qdrant client."""
        client = AsyncMock()
        client.collection_exists = AsyncMock(return_value=False)
        client.create_collection = AsyncMock()
        client.upsert = AsyncMock()
        mock_response = MagicMock()
        mock_response.points = []
        client.query_points = AsyncMock(return_value=mock_response)
        client.retrieve = AsyncMock(return_value=[])
        client.scroll = AsyncMock(return_value=([], None))
        client.delete = AsyncMock()
        client.get_collection = AsyncMock(return_value=_collection_info())
        client.get_collections = AsyncMock(
            return_value=SimpleNamespace(collections=[SimpleNamespace(name="docs")])
        )
        client.close = AsyncMock()
        return client

    def _store(self, client: AsyncMock) -> QdrantVectorStore:
        settings = QdrantSettings(url="http://localhost:6333")
        return QdrantVectorStore(settings=settings, client=client)

    async def test_create_collection(self) -> None:
        """Collection is created with cosine distance."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        await store.create_collection("test", dimensions=384)

        call_kwargs = mock_client.create_collection.call_args.kwargs
        assert call_kwargs["collection_name"] == "test"
        assert call_kwargs["vectors_config"].size == 384
        assert call_kwargs["vectors_config"].distance == Distance.COSINE

    async def test_create_collection_already_exists(self) -> None:
        """Creating existing collection raises error."""
        mock_client = self._create_mock_client()
        mock_client.collection_exists = AsyncMock(return_value=True)
        store = self._store(mock_client)

        with pytest.raises(VectorStoreError) as exc_info:
            await store.create_collection("test", dimensions=384)

        assert exc_info.value.code == ErrorCode.COLLECTION_EXISTS

    async def test_ensure_collection_creates_missing(self) -> None:
        """Missing collection is created."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        created = await store.ensure_collection("test", dimensions=384)

        assert created is True
        mock_client.create_collection.assert_called_once()

    async def test_ensure_collection_verifies_existing(self) -> None:
        """Existing collection with matching dimension is kept."""
        mock_client = self._create_mock_client()
        mock_client.collection_exists = AsyncMock(return_value=True)
        store = self._store(mock_client)

        created = await store.ensure_collection("test", dimensions=384)

        assert created is False
        mock_client.create_collection.assert_not_called()

    async def test_ensure_collection_dimension_mismatch(self) -> None:
        """Existing collection with another dimension is a configuration error."""
        mock_client = self._create_mock_client()
        mock_client.collection_exists = AsyncMock(return_value=True)
        mock_client.get_collection = AsyncMock(return_value=_collection_info(size=768))
        store = self._store(mock_client)

        with pytest.raises(ConfigurationError) as exc_info:
            await store.ensure_collection("test", dimensions=384)

        assert exc_info.value.details["actual"] == 768

    async def test_get_collection_info(self) -> None:
        """Collection info is flattened."""
        store = self._store(self._create_mock_client())

        info = await store.get_collection_info("test")

        assert info.points_count == 3
        assert info.status == "green"
        assert info.vector_size == 384
        assert info.distance == "Cosine"

    async def test_list_collections(self) -> None:
        """Collection names are listed."""
        store = self._store(self._create_mock_client())
        assert await store.list_collections() == ["docs"]

    async def test_upsert_waits(self) -> None:
        """Upsert waits for acknowledgement by default."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        points = [
            VectorPoint(id="1", vector=[0.1, 0.2], payload={"text": "hello"}),
            VectorPoint(id="2", vector=[0.3, 0.4], payload={"text": "world"}),
        ]
        count = await store.upsert("test", points)

        assert count == 2
        call_kwargs = mock_client.upsert.call_args.kwargs
        assert call_kwargs["wait"] is True
        assert [p.id for p in call_kwargs["points"]] == ["1", "2"]

    async def test_upsert_empty_list(self) -> None:
        """Upserting empty list returns 0."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        assert await store.upsert("test", []) == 0
        mock_client.upsert.assert_not_called()

    async def test_search(self) -> None:
        """Search returns results with payload."""
        mock_client = self._create_mock_client()
        mock_point = MagicMock()
        mock_point.id = "1"
        mock_point.score = 0.95
        mock_point.payload = {"text": "hello"}
        mock_response = MagicMock()
        mock_response.points = [mock_point]
        mock_client.query_points = AsyncMock(return_value=mock_response)
        store = self._store(mock_client)

        results = await store.search("test", vector=[0.1, 0.2], limit=5, score_threshold=0.5)

        assert len(results) == 1
        assert results[0].id == "1"
        assert results[0].score == 0.95
        assert results[0].payload["text"] == "hello"
        call_kwargs = mock_client.query_points.call_args.kwargs
        assert call_kwargs["score_threshold"] == 0.5
        assert call_kwargs["with_payload"] is True
        assert call_kwargs["limit"] == 5

    async def test_search_with_filters(self) -> None:
        """Search can filter results."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        await store.search("test", vector=[0.1, 0.2], filters={"source": "doc.txt"})

        call_kwargs = mock_client.query_points.call_args.kwargs
        assert call_kwargs["query_filter"] is not None

    async def test_retrieve(self) -> None:
        """Retrieved records carry vector and payload."""
        mock_client = self._create_mock_client()
        mock_client.retrieve = AsyncMock(
            return_value=[
                SimpleNamespace(id="abc", vector=[0.5, 0.5], payload={"text": "t"}),
            ]
        )
        store = self._store(mock_client)

        points = await store.retrieve("test", ["abc"])

        assert points == [StoredPoint(id="abc", vector=[0.5, 0.5], payload={"text": "t"})]
        assert mock_client.retrieve.call_args.kwargs["with_vectors"] is True

    async def test_retrieve_named_vector(self) -> None:
        """Named vectors are unwrapped."""
        mock_client = self._create_mock_client()
        mock_client.retrieve = AsyncMock(
            return_value=[SimpleNamespace(id="abc", vector={"dense": [1.0]}, payload=None)]
        )
        store = self._store(mock_client)

        points = await store.retrieve("test", ["abc"])

        assert points[0].vector == [1.0]
        assert points[0].payload == {}

    async def test_retrieve_empty_ids(self) -> None:
        """No ids means no call."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        assert await store.retrieve("test", []) == []
        mock_client.retrieve.assert_not_called()

    async def test_scroll_filters_payload(self) -> None:
        """Scroll passes a payload filter and limit."""
        mock_client = self._create_mock_client()
        mock_client.scroll = AsyncMock(
            return_value=([SimpleNamespace(id="k", vector=None, payload={"original_id": "doc"})], None)
        )
        store = self._store(mock_client)

        points = await store.scroll("test", filters={"original_id": "doc"}, limit=1)

        assert points[0].id == "k"
        call_kwargs = mock_client.scroll.call_args.kwargs
        assert call_kwargs["limit"] == 1
        condition = call_kwargs["scroll_filter"].must[0]
        assert condition.key == "original_id"
        assert condition.match.value == "doc"

    async def test_delete_records(self) -> None:
        """Points can be deleted by key."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        count = await store.delete("test", ids=["1", "2"])

        assert count == 2
        call_kwargs = mock_client.delete.call_args.kwargs
        assert call_kwargs["wait"] is True
        assert isinstance(call_kwargs["points_selector"], PointIdsList)

    async def test_delete_empty_list(self) -> None:
        """Deleting empty list returns 0."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        assert await store.delete("test", ids=[]) == 0
        mock_client.delete.assert_not_called()

    async def test_client_failure_wrapped(self) -> None:
        """Client exceptions become VectorStoreError with context."""
        mock_client = self._create_mock_client()
        mock_client.upsert = AsyncMock(side_effect=ConnectionError("refused"))
        store = self._store(mock_client)

        with pytest.raises(VectorStoreError) as exc_info:
            await store.upsert("test", [VectorPoint(id="1", vector=[0.1])])

        assert exc_info.value.details["operation"] == "upsert"
        assert exc_info.value.details["collection"] == "test"
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    async def test_close(self) -> None:
        """Store closes client properly."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)
        store._owns_client = True

        await store.close()

        mock_client.close.assert_called_once()

    async def test_collection_missing_maps_to_not_found(self) -> None:
        """A Qdrant 404 surfaces as COLLECTION_NOT_FOUND."""
        mock_client = self._create_mock_client()
        mock_client.get_collection = AsyncMock(
            side_effect=UnexpectedResponse(404, "Not Found", b"{}", httpx.Headers())
        )
        store = self._store(mock_client)

        with pytest.raises(VectorStoreError) as exc_info:
            await store.get_collection_info("missing")

        assert exc_info.value.code == ErrorCode.COLLECTION_NOT_FOUND

    async def test_other_status_stays_store_error(self) -> None:
        """Non-404 responses keep the generic code."""
        mock_client = self._create_mock_client()
        mock_client.get_collection = AsyncMock(
            side_effect=UnexpectedResponse(500, "Internal", b"{}", httpx.Headers())
        )
        store = self._store(mock_client)

        with pytest.raises(VectorStoreError) as exc_info:
            await store.get_collection_info("test")

        assert exc_info.value.code == ErrorCode.VECTOR_STORE_ERROR


class TestQdrantClientConstruction:
    """Tests for building the client from settings."""

    async def test_malformed_url_is_configuration_error(self) -> None:
        """A URL the client cannot parse raises ConfigurationError."""
        store = QdrantVectorStore(settings=QdrantSettings(url="http://[bad"))

        with pytest.raises(ConfigurationError) as exc_info:
            await store.list_collections()

        assert exc_info.value.details["url"] == "http://[bad"
