"""
Module: vectors

Purpose:
    Vector index records: what gets upserted (VectorRecord), what comes
    back from a query (ScoredResult) and the equality filters a query may
    carry (SearchFilters).

Dependencies:
    - dataclasses (std)

Used By:
    - indexing.indexer
    - providers.qdrant
    - retrieval.search
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

Metadata = Dict[str, Any]


@dataclass(frozen=True, slots=True)
class VectorRecord:
    """
    One upsert unit.

    Attributes:
        id: Stored question id (upserts overwrite by id)
        vector: Fixed-length embedding
        metadata: Flat, filterable copy of the question's searchable fields
    """

    id: str
    vector: Sequence[float] = field(repr=False)
    metadata: Metadata = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate record on construction."""
        if not self.id:
            raise ValueError("id cannot be empty")
        if len(self.vector) == 0:
            raise ValueError(f"{self.id}: vector cannot be empty")


@dataclass(frozen=True, slots=True)
class ScoredResult:
    """Query hit with its similarity score (higher is closer)."""

    id: str
    score: float
    metadata: Metadata = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SearchFilters:
    """
    Optional metadata equality filters; unset fields do not filter.

    Example:
        >>> SearchFilters(year=2021, topic="Waves").as_dict()
        {'year': 2021, 'topic': 'Waves'}
    """

    year: Optional[int] = None
    paper: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[str] = None

    def as_dict(self) -> Metadata:
        """Only the fields that are set."""
        result: Metadata = {}
        if self.year is not None:
            result["year"] = self.year
        if self.paper is not None:
            result["paper"] = self.paper
        if self.topic is not None:
            result["topic"] = self.topic
        if self.difficulty is not None:
            result["difficulty"] = self.difficulty
        return result

    def is_empty(self) -> bool:
        return not self.as_dict()
