"""Embedding orchestration over a pluggable generator."""

import math
import numbers
import time
from collections.abc import Sequence
from typing import Any

from src.embeddings.generators import EmbeddingGenerator
from src.embeddings.models import ModelInfo
from src.exceptions import (
    EmbeddingError,
    ErrorCode,
    NotInitializedError,
    ValidationError,
)
from src.logging_config import get_logger
from src.observability.metrics import track_embedding_batch, track_embedding_request

logger = get_logger(__name__)

_PREVIEW_CHARS = 50


def normalize_embedding(raw: Any) -> list[float]:
    """Flatten a generator's raw output into a single vector.

    Accepted shapes:
        - a flat sequence of numbers
        - a nested sequence holding exactly one row
        - an array or tensor exposing ``tolist()``
        - an object exposing a flat ``data`` buffer

    Args:
        raw: Output of EmbeddingGenerator.embed().

    Returns:
        Non-empty list of finite floats.

    Raises:
        EmbeddingError: If the output has any other shape.
    """
    values = raw
    if hasattr(values, "tolist"):
        values = values.tolist()
    elif not isinstance(values, Sequence) and hasattr(values, "data"):
        values = list(values.data)

    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise EmbeddingError(
            f"Unexpected embedding output type: {type(raw).__name__}",
            code=ErrorCode.EMBEDDING_OUTPUT_ERROR,
        )

    if values and isinstance(values[0], Sequence):
        if len(values) != 1:
            raise EmbeddingError(
                f"Expected a single embedding row, got {len(values)}",
                code=ErrorCode.EMBEDDING_OUTPUT_ERROR,
                details={"rows": len(values)},
            )
        values = values[0]

    if not values:
        raise EmbeddingError(
            "Embedding output is empty",
            code=ErrorCode.EMBEDDING_OUTPUT_ERROR,
        )

    vector: list[float] = []
    for position, value in enumerate(values):
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise EmbeddingError(
                f"Non-numeric embedding value at position {position}",
                code=ErrorCode.EMBEDDING_OUTPUT_ERROR,
                details={"position": position, "type": type(value).__name__},
            )
        number = float(value)
        if not math.isfinite(number):
            raise EmbeddingError(
                f"Non-finite embedding value at position {position}",
                code=ErrorCode.EMBEDDING_OUTPUT_ERROR,
                details={"position": position},
            )
        vector.append(number)

    return vector


class EmbeddingOrchestrator:
    """Single entry point for turning text into vectors.

    Validates input, drives the generator, and normalizes its output.
    """

    def __init__(self, generator: EmbeddingGenerator) -> None:
        """Initialize the orchestrator.

        Args:
            generator: Backend producing raw embeddings.
        """
        self._generator = generator

    @property
    def is_initialized(self) -> bool:
        """Whether the generator is ready."""
        return self._generator.is_loaded

    def model_info(self) -> ModelInfo:
        """Describe the model in use."""
        return self._generator.info()

    async def initialize(self) -> None:
        """Load the embedding model.

        Raises:
            EmbeddingError: If the model cannot be loaded.
        """
        logger.info("Initializing embedding model", extra={"model": self._generator.info().name})
        await self._generator.load()

    async def close(self) -> None:
        """Release generator resources."""
        await self._generator.close()

    async def generate(self, text: str) -> list[float]:
        """Generate the embedding for one text.

        Args:
            text: Non-empty input text.

        Returns:
            Flat embedding vector.

        Raises:
            ValidationError: If the text is empty or whitespace.
            NotInitializedError: If initialize() has not completed.
            EmbeddingError: If the generator fails or returns malformed output.
        """
        if not text or not text.strip():
            raise ValidationError("Input text cannot be empty")

        if not self.is_initialized:
            raise NotInitializedError(
                "Embedding model not initialized. Call initialize() first."
            )

        model = self._generator.info().name
        preview = text[:_PREVIEW_CHARS]
        start = time.perf_counter()
        try:
            raw = await self._generator.embed(text)
            vector = normalize_embedding(raw)
        except EmbeddingError as e:
            track_embedding_request(model, time.perf_counter() - start, success=False)
            e.details.setdefault("text_preview", preview)
            logger.error(f"Failed to generate embedding: {e.message}", extra={"text_preview": preview})
            raise
        except Exception as e:
            track_embedding_request(model, time.perf_counter() - start, success=False)
            raise EmbeddingError(
                f"Failed to generate embedding: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"text_preview": preview, "error": str(e)},
            ) from e

        track_embedding_request(model, time.perf_counter() - start, success=True)
        logger.debug(
            "Generated embedding",
            extra={"dimensions": len(vector), "text_preview": preview},
        )
        return vector

    async def generate_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for several texts, one at a time, in order.

        The first failure aborts the batch; no partial results are returned.

        Raises:
            ValidationError: If ``texts`` is empty or holds an empty text.
        """
        if not texts:
            raise ValidationError("Input texts array cannot be empty")

        track_embedding_batch(self._generator.info().name, len(texts))
        vectors: list[list[float]] = []
        for text in texts:
            vectors.append(await self.generate(text))
        return vectors
