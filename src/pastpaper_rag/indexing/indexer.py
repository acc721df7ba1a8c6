"""
Module: indexing.indexer

Purpose:
    Embeds persisted questions and upserts them into the vector index in
    provider-sized sub-batches. The indexer owns the one embedder instance
    used both at indexing time and at query time (retrieval.search takes
    the indexer, not a separate embedder).

Key Functions:
    - EmbeddingIndexer.embed(): Text -> checked fixed-length vector
    - EmbeddingIndexer.upsert(): Sequential sub-batches, stop on failure
    - EmbeddingIndexer.index_questions(): Stored questions -> vectors
    - searchable_text() / vector_metadata(): What gets embedded and stored

Dependencies:
    - numpy: Vector sanity checks
    - core.capabilities: EmbeddingCapability, VectorIndex

Used By:
    - pipeline.orchestrator: Indexing stage
    - retrieval.search: Query embedding and nearest-neighbour search
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from pastpaper_rag.common.thresholds import INDEX_THRESHOLDS
from pastpaper_rag.core.capabilities import EmbeddingCapability, VectorIndex
from pastpaper_rag.core.models import StoredQuestion, VectorRecord

logger = logging.getLogger(__name__)


class EmbeddingError(Exception):
    """Embedding call failed or returned an unusable vector."""
    pass


class IndexBatchError(Exception):
    """One upsert sub-batch failed; later sub-batches were not sent."""

    def __init__(self, batch_number: int, batch_count: int, ids: Sequence[str], cause: BaseException):
        super().__init__(
            f"Upsert sub-batch {batch_number}/{batch_count} ({len(ids)} record(s)) failed: "
            f"{type(cause).__name__}: {cause}"
        )
        self.batch_number = batch_number
        self.batch_count = batch_count
        self.ids = list(ids)
        self.cause = cause


def searchable_text(stored: StoredQuestion) -> str:
    """Text embedded for a question: the question text itself."""
    return stored.record.text


def vector_metadata(stored: StoredQuestion) -> Dict[str, Any]:
    """Flat, filterable payload stored beside the vector."""
    record = stored.record
    metadata: Dict[str, Any] = {
        "year": stored.year,
        "paper": stored.paper,
        "question_number": record.question_number,
        "topic": record.topic,
        "difficulty": record.difficulty.value,
        "marks": record.marks,
        "text": record.text,
        "mark_scheme": record.mark_scheme,
    }
    if record.examiner_remarks:
        metadata["examiner_remarks"] = record.examiner_remarks
    if stored.image_url:
        metadata["image_url"] = stored.image_url
    return metadata


class EmbeddingIndexer:
    """
    Embedding plus batched vector upserts.

    Attributes:
        embedder: The single embedding client for index and query
        index: Vector index
        batch_size: Records per upsert call (provider cap, default 100)

    Example:
        >>> indexer = EmbeddingIndexer(GeminiEmbedder(api_key), QdrantVectorIndex(client))
        >>> await indexer.index_questions(stored_questions)
    """

    def __init__(
        self,
        embedder: EmbeddingCapability,
        index: VectorIndex,
        batch_size: int = INDEX_THRESHOLDS.upsert_batch_size,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1: {batch_size}")
        self.embedder = embedder
        self.index = index
        self.batch_size = batch_size

    @property
    def dimensions(self) -> int:
        return self.embedder.dimensions

    async def ensure_ready(self) -> None:
        """Create the index collection for this embedder's dimension if missing."""
        await self.index.ensure_collection(self.dimensions)

    async def rebuild(self) -> None:
        """Drop and recreate the index collection."""
        logger.warning(f"Recreating vector index ({self.dimensions} dimensions)")
        await self.index.recreate(self.dimensions)

    # ─────────────────────────────────────────────────────────────────────────
    # Embedding
    # ─────────────────────────────────────────────────────────────────────────

    async def embed(self, text: str) -> List[float]:
        """
        Embed one text and check the result.

        Raises:
            ValueError: If text is blank
            EmbeddingError: If the provider fails or returns a vector of the
                wrong length or with non-finite values
        """
        if not text or not text.strip():
            raise ValueError("Cannot embed blank text")
        try:
            raw = await self.embedder.embed(text)
        except Exception as e:
            raise EmbeddingError(f"Embedding failed: {type(e).__name__}: {e}") from e

        vector = np.asarray(raw, dtype=np.float64)
        if vector.ndim != 1 or vector.shape[0] != self.dimensions:
            raise EmbeddingError(
                f"Expected {self.dimensions}-dimensional vector, got shape {vector.shape}"
            )
        if not np.all(np.isfinite(vector)):
            raise EmbeddingError("Embedding contains non-finite values")
        return vector.tolist()

    async def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed texts one after another, in order."""
        return [await self.embed(text) for text in texts]

    # ─────────────────────────────────────────────────────────────────────────
    # Upserts
    # ─────────────────────────────────────────────────────────────────────────

    async def upsert(self, records: Sequence[VectorRecord]) -> int:
        """
        Upsert records in sequential sub-batches of ``batch_size``.

        Returns:
            Number of records upserted

        Raises:
            IndexBatchError: On the first failing sub-batch. Earlier
                sub-batches stay upserted.
        """
        batches = [
            records[start:start + self.batch_size]
            for start in range(0, len(records), self.batch_size)
        ]
        for number, batch in enumerate(batches, start=1):
            try:
                await self.index.upsert(batch)
            except Exception as e:
                raise IndexBatchError(number, len(batches), [r.id for r in batch], e) from e
            logger.debug(f"Upserted sub-batch {number}/{len(batches)} ({len(batch)} record(s))")
        return len(records)

    async def index_questions(self, stored: Sequence[StoredQuestion]) -> List[str]:
        """
        Embed and upsert stored questions.

        Returns:
            Ids of the upserted questions, in input order
        """
        if not stored:
            return []
        vectors = await self.embed_many([searchable_text(s) for s in stored])
        records = [
            VectorRecord(id=s.id, vector=vector, metadata=vector_metadata(s))
            for s, vector in zip(stored, vectors)
        ]
        await self.upsert(records)
        logger.info(f"Indexed {len(records)} question(s)")
        return [r.id for r in records]

    async def delete_scope(self, year: int, paper: Optional[str] = None) -> None:
        await self.index.delete_scope(year, paper)
