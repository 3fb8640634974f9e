"""Vector store module."""

from src.vectorstore.models import (
    CollectionInfo,
    SearchResult,
    StoredPoint,
    VectorPoint,
)
from src.vectorstore.service import QdrantVectorStore, VectorStore

__all__ = [
    "CollectionInfo",
    "QdrantVectorStore",
    "SearchResult",
    "StoredPoint",
    "VectorPoint",
    "VectorStore",
]
