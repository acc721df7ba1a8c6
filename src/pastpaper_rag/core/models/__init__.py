"""
Core data models shared by extraction, persistence, indexing and retrieval.

All models are frozen dataclasses validated on construction.
"""

from .chunks import DocumentChunk
from .records import (
    Difficulty,
    MarkSchemeRecord,
    NaturalKey,
    QuestionRecord,
    StoredQuestion,
    question_id,
)
from .regions import FigureRegion
from .vectors import ScoredResult, SearchFilters, VectorRecord

__all__ = [
    "Difficulty",
    "DocumentChunk",
    "FigureRegion",
    "MarkSchemeRecord",
    "NaturalKey",
    "QuestionRecord",
    "ScoredResult",
    "SearchFilters",
    "StoredQuestion",
    "VectorRecord",
    "question_id",
]
