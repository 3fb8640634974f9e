"""Similarity search module."""

from src.retrieval.models import SearchResponse, SimilarityResult
from src.retrieval.search import SimilaritySearch

__all__ = [
    "SearchResponse",
    "SimilarityResult",
    "SimilaritySearch",
]
