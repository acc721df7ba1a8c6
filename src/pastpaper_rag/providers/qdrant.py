"""
Module: providers.qdrant

Purpose:
    Qdrant implementation of the vector index capability. Vectors are
    compared by cosine similarity; metadata lives in the point payload and
    supports equality filters on year, paper, topic and difficulty.

Key Classes:
    - QdrantVectorIndex: VectorIndex over AsyncQdrantClient

Key Functions:
    - build_filter(): Equality conditions -> qdrant Filter

Dependencies:
    - qdrant-client: AsyncQdrantClient and models

Used By:
    - pipeline.cli: Index construction
    - tests: In-memory client (location=":memory:")
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

from qdrant_client import AsyncQdrantClient, models

from pastpaper_rag.core.capabilities import VectorIndex
from pastpaper_rag.core.models import ScoredResult, SearchFilters, VectorRecord

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION = "past_paper_questions"

# Payload fields used in filters, with their index type
_FILTER_FIELDS = {
    "year": models.PayloadSchemaType.INTEGER,
    "paper": models.PayloadSchemaType.KEYWORD,
    "topic": models.PayloadSchemaType.KEYWORD,
    "difficulty": models.PayloadSchemaType.KEYWORD,
}


def build_filter(conditions: Dict[str, Any]) -> Optional[models.Filter]:
    """
    All-of equality filter, or None when there are no conditions.

    Example:
        >>> build_filter({"year": 2021, "topic": "Waves"}).must[0].key
        'year'
    """
    if not conditions:
        return None
    return models.Filter(
        must=[
            models.FieldCondition(key=key, match=models.MatchValue(value=value))
            for key, value in conditions.items()
        ]
    )


class QdrantVectorIndex(VectorIndex):
    """
    Vector index backed by one Qdrant collection.

    Attributes:
        client: Async Qdrant client (remote URL or ":memory:")
        collection_name: Collection holding question vectors
        payload_indexes: Create payload indexes for filter fields when the
            collection is created (no effect in local mode)

    Example:
        >>> index = QdrantVectorIndex(AsyncQdrantClient(url=QDRANT_URL))
        >>> await index.ensure_collection(3072)
    """

    def __init__(
        self,
        client: AsyncQdrantClient,
        collection_name: str = DEFAULT_COLLECTION,
        *,
        payload_indexes: bool = True,
    ) -> None:
        self.client = client
        self.collection_name = collection_name
        self.payload_indexes = payload_indexes

    async def _create(self, dimensions: int) -> None:
        await self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config=models.VectorParams(size=dimensions, distance=models.Distance.COSINE),
        )
        if self.payload_indexes:
            for field_name, schema in _FILTER_FIELDS.items():
                await self.client.create_payload_index(
                    collection_name=self.collection_name,
                    field_name=field_name,
                    field_schema=schema,
                )
        logger.info(f"Created collection {self.collection_name!r} ({dimensions} dims, cosine)")

    async def ensure_collection(self, dimensions: int) -> None:
        """
        Create the collection if missing.

        Raises:
            ValueError: If the collection exists with another vector size
        """
        if not await self.client.collection_exists(self.collection_name):
            await self._create(dimensions)
            return

        info = await self.client.get_collection(self.collection_name)
        vectors = info.config.params.vectors
        size = getattr(vectors, "size", None)
        if size is not None and size != dimensions:
            raise ValueError(
                f"Collection {self.collection_name!r} holds {size}-dimensional vectors, "
                f"embedder produces {dimensions}; recreate the index"
            )

    async def recreate(self, dimensions: int) -> None:
        if await self.client.collection_exists(self.collection_name):
            await self.client.delete_collection(self.collection_name)
            logger.warning(f"Deleted collection {self.collection_name!r}")
        await self._create(dimensions)

    async def upsert(self, records: Sequence[VectorRecord]) -> None:
        if not records:
            return
        points = [
            models.PointStruct(id=record.id, vector=list(record.vector), payload=dict(record.metadata))
            for record in records
        ]
        await self.client.upsert(collection_name=self.collection_name, points=points, wait=True)

    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filters: Optional[SearchFilters] = None,
    ) -> list[ScoredResult]:
        response = await self.client.query_points(
            collection_name=self.collection_name,
            query=list(vector),
            limit=top_k,
            query_filter=build_filter(filters.as_dict() if filters else {}),
            with_payload=True,
            with_vectors=False,
        )
        results = [
            ScoredResult(id=str(point.id), score=float(point.score), metadata=dict(point.payload or {}))
            for point in response.points
        ]
        results.sort(key=lambda r: r.score, reverse=True)
        return results

    async def delete_scope(self, year: int, paper: Optional[str] = None) -> None:
        conditions: Dict[str, Any] = {"year": year}
        if paper is not None:
            conditions["paper"] = paper
        if not await self.client.collection_exists(self.collection_name):
            return
        await self.client.delete(
            collection_name=self.collection_name,
            points_selector=models.FilterSelector(filter=build_filter(conditions)),
            wait=True,
        )
        logger.info(f"Deleted vectors for {year} {paper or '(all papers)'}")
