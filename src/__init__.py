"""Semantic vector store: text embeddings with similarity search."""

__version__ = "0.1.0"
