"""Embedding data models."""

from pydantic import BaseModel, Field

from src.config import EmbeddingProvider, ModelSource


class ModelInfo(BaseModel):
    """Description of the loaded embedding model.

    Attributes:
        name: Model name or hub identifier.
        provider: Backend computing the embeddings.
        source: Loading policy for in-process models.
        local_path: Local model directory, if any.
        initialized: Whether the model is ready to serve requests.
    """

    name: str = Field(description="Model name")
    provider: EmbeddingProvider = Field(description="Embedding backend")
    source: ModelSource | None = Field(
        default=None,
        description="Model loading policy",
    )
    local_path: str | None = Field(
        default=None,
        description="Local model directory",
    )
    initialized: bool = Field(description="Model ready to serve")
