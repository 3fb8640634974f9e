"""Models for the upward service interface."""

from typing import Any

from pydantic import BaseModel, Field


class StoreItem(BaseModel):
    """A text to embed and store."""

    text: str = Field(description="Text to embed")
    id: str | None = Field(default=None, description="Optional record id")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Caller metadata",
    )


class ItemOutcome(BaseModel):
    """Per-item result of a batch store.

    Attributes:
        index: Position of the item in the request.
        id: Stored record id (requested id if the item failed).
        success: Whether the item was stored.
        error: Failure reason for rejected items.
    """

    index: int
    id: str | None = None
    success: bool
    error: str | None = None


class BatchStoreResult(BaseModel):
    """Result of storing several texts."""

    results: list[ItemOutcome] = Field(default_factory=list)

    @property
    def processed(self) -> int:
        """Number of items in the request."""
        return len(self.results)

    @property
    def succeeded(self) -> int:
        """Number of items stored."""
        return sum(1 for r in self.results if r.success)
