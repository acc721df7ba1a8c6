"""Embedding generation and vector index upserts."""

from .indexer import (
    EmbeddingError,
    EmbeddingIndexer,
    IndexBatchError,
    searchable_text,
    vector_metadata,
)

__all__ = [
    "EmbeddingError",
    "EmbeddingIndexer",
    "IndexBatchError",
    "searchable_text",
    "vector_metadata",
]
