"""Embedding generation module."""

from src.embeddings.generators import (
    EmbeddingGenerator,
    HTTPEmbeddingGenerator,
    SentenceTransformerGenerator,
    build_generator,
)
from src.embeddings.models import ModelInfo
from src.embeddings.service import EmbeddingOrchestrator, normalize_embedding

__all__ = [
    "EmbeddingGenerator",
    "EmbeddingOrchestrator",
    "HTTPEmbeddingGenerator",
    "ModelInfo",
    "SentenceTransformerGenerator",
    "build_generator",
    "normalize_embedding",
]
