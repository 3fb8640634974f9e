"""Vector store data models."""

from typing import Any

from pydantic import BaseModel, Field


class VectorPoint(BaseModel):
    """A point to write into the vector database.

    Attributes:
        id: Native point key.
        vector: The embedding vector.
        payload: Additional data stored with the vector.
    """

    id: str = Field(description="Native point key")
    vector: list[float] = Field(description="Embedding vector")
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Point payload",
    )


class StoredPoint(BaseModel):
    """A point read back from the vector database.

    The vector is None when it was not requested.
    """

    id: str = Field(description="Native point key")
    vector: list[float] | None = Field(default=None, description="Embedding vector")
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Point payload",
    )


class SearchResult(BaseModel):
    """Result from a vector similarity search.

    Attributes:
        id: Native point key.
        score: Similarity score (higher is more similar).
        payload: Stored payload.
    """

    id: str = Field(description="Native point key")
    score: float = Field(description="Similarity score")
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Point payload",
    )


class CollectionInfo(BaseModel):
    """Collection metadata reported by the vector store."""

    name: str = Field(description="Collection name")
    points_count: int = Field(default=0, description="Number of stored points")
    status: str = Field(description="Collection status")
    vector_size: int | None = Field(default=None, description="Vector dimension")
    distance: str | None = Field(default=None, description="Distance metric")
