"""Text vector memory service."""

from src.memory.models import BatchStoreResult, ItemOutcome, StoreItem
from src.memory.service import VectorMemoryService

__all__ = [
    "BatchStoreResult",
    "ItemOutcome",
    "StoreItem",
    "VectorMemoryService",
]
