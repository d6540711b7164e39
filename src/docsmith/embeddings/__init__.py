"""Embedding-based relationship discovery."""

from docsmith.embeddings.relationships import EmbeddedNode, EmbeddingError, RelationshipAnalyzer

__all__ = ["EmbeddedNode", "EmbeddingError", "RelationshipAnalyzer"]
