"""Embedding generator backends.

A generator turns one text into a raw model output. The output shape is
backend specific; EmbeddingOrchestrator normalizes it.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

import httpx
from sentence_transformers import SentenceTransformer

from src.config import EmbeddingProvider, EmbeddingSettings, ModelSource, get_settings
from src.embeddings.models import ModelInfo
from src.exceptions import EmbeddingError, ErrorCode
from src.logging_config import get_logger

logger = get_logger(__name__)


class EmbeddingGenerator(ABC):
    """Abstract base class for embedding generators."""

    @abstractmethod
    async def load(self) -> None:
        """Prepare the generator for use.

        Raises:
            EmbeddingError: If the model or service is unavailable.
        """
        ...

    @abstractmethod
    async def embed(self, text: str) -> Any:
        """Produce the raw embedding output for one text.

        Raises:
            EmbeddingError: If generation fails.
        """
        ...

    @property
    @abstractmethod
    def is_loaded(self) -> bool:
        """Whether load() has completed."""
        ...

    @abstractmethod
    def info(self) -> ModelInfo:
        """Describe the model behind this generator."""
        ...

    async def close(self) -> None:
        """Release resources held by the generator."""
        return None


class SentenceTransformerGenerator(EmbeddingGenerator):
    """In-process generator backed by sentence-transformers.

    Mean pooling and L2 normalization are applied by the model, so cosine
    similarity and dot product agree.
    """

    def __init__(self, settings: EmbeddingSettings | None = None) -> None:
        """Initialize the generator.

        Args:
            settings: Embedding configuration. Uses defaults if not provided.
        """
        self._settings = settings or get_settings().embedding
        self._model: SentenceTransformer | None = None

    @property
    def is_loaded(self) -> bool:
        """Whether the model has been loaded."""
        return self._model is not None

    def info(self) -> ModelInfo:
        """Describe the configured model."""
        return ModelInfo(
            name=self._settings.model,
            provider=EmbeddingProvider.LOCAL,
            source=self._settings.model_source,
            local_path=self._settings.local_model_path,
            initialized=self.is_loaded,
        )

    async def load(self) -> None:
        """Load the model according to the configured source policy."""
        if self._model is not None:
            return

        source = self._settings.model_source
        if source == ModelSource.REMOTE_ONLY:
            self._model = await self._load_remote()
            return

        try:
            self._model = await self._load_local()
        except EmbeddingError:
            if source == ModelSource.LOCAL_ONLY:
                raise
            logger.warning(
                "Local model unavailable, loading from model hub",
                extra={
                    "local_path": self._settings.local_model_path,
                    "model": self._settings.model,
                },
            )
            self._model = await self._load_remote()

    async def _load_local(self) -> SentenceTransformer:
        path = self._settings.local_model_path
        try:
            model = await asyncio.to_thread(
                SentenceTransformer,
                path,
                device=self._settings.device,
                local_files_only=True,
            )
        except Exception as e:
            raise EmbeddingError(
                f"Failed to load local model from {path}: {e}",
                code=ErrorCode.EMBEDDING_MODEL_LOAD_ERROR,
                details={"path": path, "error": str(e)},
            ) from e

        logger.info("Loaded local embedding model", extra={"path": path})
        return model

    async def _load_remote(self) -> SentenceTransformer:
        name = self._settings.model
        try:
            model = await asyncio.to_thread(
                SentenceTransformer,
                name,
                device=self._settings.device,
            )
        except Exception as e:
            raise EmbeddingError(
                f"Failed to load model {name}: {e}",
                code=ErrorCode.EMBEDDING_MODEL_LOAD_ERROR,
                details={"model": name, "error": str(e)},
            ) from e

        logger.info("Loaded embedding model from hub", extra={"model": name})
        return model

    async def embed(self, text: str) -> Any:
        """Encode one text into a normalized vector."""
        if self._model is None:
            raise EmbeddingError(
                "Embedding model not loaded",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
            )

        try:
            return await asyncio.to_thread(
                self._model.encode,
                text,
                normalize_embeddings=True,
                convert_to_numpy=True,
                show_progress_bar=False,
            )
        except Exception as e:
            raise EmbeddingError(
                f"Model inference failed: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"error": str(e)},
            ) from e


class HTTPEmbeddingGenerator(EmbeddingGenerator):
    """Generator using an HTTP embeddings API.

    Compatible with OpenAI-style embedding APIs and
    text-embeddings-inference (TEI) servers.
    """

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the HTTP generator.

        Args:
            settings: Embedding configuration. Uses defaults if not provided.
            client: HTTP client. Creates new one if not provided.
        """
        self._settings = settings or get_settings().embedding
        self._client = client
        self._owns_client = client is None
        self._loaded = False

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            if not self._settings.verify_tls:
                logger.warning(
                    "TLS verification disabled for embedding service",
                    extra={"base_url": self._settings.base_url},
                )
            self._client = httpx.AsyncClient(
                timeout=self._settings.timeout,
                verify=self._settings.verify_tls,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_loaded(self) -> bool:
        """Whether the generator has been prepared."""
        return self._loaded

    def info(self) -> ModelInfo:
        """Describe the remote model."""
        return ModelInfo(
            name=self._settings.model,
            provider=EmbeddingProvider.HTTP,
            initialized=self._loaded,
        )

    async def load(self) -> None:
        """Create the HTTP client.

        The service itself is probed lazily by the first request.
        """
        await self._get_client()
        self._loaded = True

    async def embed(self, text: str) -> Any:
        """Request the embedding for one text.

        Returns:
            The ``embedding`` field of the first item in the response.
        """
        client = await self._get_client()
        url = f"{self._settings.base_url}/embeddings"
        payload = {
            "input": [text],
            "model": self._settings.model,
        }

        try:
            response = await client.post(url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Embedding request failed: {e.response.status_code}",
                extra={"url": url, "status": e.response.status_code},
            )
            raise EmbeddingError(
                f"Embedding service returned {e.response.status_code}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Embedding request error: {e}", extra={"url": url})
            raise EmbeddingError(
                f"Failed to connect to embedding service: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"url": url},
            ) from e

        try:
            return response.json()["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise EmbeddingError(
                f"Invalid response from embedding service: {e}",
                code=ErrorCode.EMBEDDING_OUTPUT_ERROR,
                details={"error": str(e)},
            ) from e


def build_generator(settings: EmbeddingSettings | None = None) -> EmbeddingGenerator:
    """Create the generator selected by configuration."""
    settings = settings or get_settings().embedding
    if settings.provider == EmbeddingProvider.HTTP:
        return HTTPEmbeddingGenerator(settings=settings)
    return SentenceTransformerGenerator(settings=settings)
