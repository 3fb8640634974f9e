"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.app import create_app
from src.config import Settings
from src.embeddings.service import EmbeddingOrchestrator
from src.memory.service import VectorMemoryService
from src.records.store import VectorRecordStore
from tests.fakes import COLLECTION, DIMENSIONS, FakeGenerator, InMemoryVectorStore


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at the test collection."""
    settings = Settings()
    settings.qdrant.collection_name = COLLECTION
    settings.qdrant.vector_size = DIMENSIONS
    return settings


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    """In-memory vector store with the test collection created."""
    store = InMemoryVectorStore()
    store.collections[COLLECTION] = {}
    store.sizes[COLLECTION] = DIMENSIONS
    return store


@pytest.fixture
def record_store(vector_store: InMemoryVectorStore) -> VectorRecordStore:
    """Record store over the in-memory vector store."""
    return VectorRecordStore(vector_store, collection=COLLECTION, dimensions=DIMENSIONS)


@pytest.fixture
def generator() -> FakeGenerator:
    """Fake embedding generator."""
    return FakeGenerator()


@pytest.fixture
def service(
    generator: FakeGenerator,
    vector_store: InMemoryVectorStore,
    settings: Settings,
) -> VectorMemoryService:
    """Service wired to fakes, not yet initialized."""
    return VectorMemoryService(
        embeddings=EmbeddingOrchestrator(generator),
        vector_store=vector_store,
        settings=settings,
    )


@pytest.fixture
async def ready_service(service: VectorMemoryService) -> VectorMemoryService:
    """Initialized service wired to fakes."""
    await service.initialize()
    return service


@pytest.fixture
async def client(ready_service: VectorMemoryService) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for an app using the fake-backed service.

    Yields:
        AsyncClient configured for testing.
    """
    app = create_app(service=ready_service)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
