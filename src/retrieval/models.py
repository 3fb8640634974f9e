"""Similarity search data models."""

from typing import Any

from pydantic import BaseModel, Field


class SimilarityResult(BaseModel):
    """One hit of a similarity search.

    Attributes:
        id: Caller-facing record id.
        text: Stored source text.
        score: Cosine similarity (higher is more similar).
        metadata: Caller metadata stored with the record.
    """

    id: str = Field(description="Record identifier")
    text: str = Field(description="Stored text")
    score: float = Field(description="Similarity score")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Record metadata",
    )


class SearchResponse(BaseModel):
    """Outcome of a search request.

    ``success`` is False when the reference record of a similar-to
    search does not exist.
    """

    results: list[SimilarityResult] = Field(default_factory=list)
    query: str = Field(default="", description="Description of the query")
    success: bool = Field(default=True)
