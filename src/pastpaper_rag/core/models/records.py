"""
Module: records

Purpose:
    Provides the question records that flow through the pipeline:
    QuestionRecord (extracted, then enriched with a mark scheme),
    MarkSchemeRecord (transient, merged into questions) and
    StoredQuestion (the persisted form keyed by natural key).

Key Functions:
    - Difficulty.from_marks(marks): Difficulty band for a mark count
    - QuestionRecord.with_mark_scheme(): Enriched copy after merge
    - StoredQuestion.from_record(): Persisted form of a merged record
    - question_id(): Stable id derived from the natural key
    - to_dict() / from_dict(): Serialization

Dependencies:
    - dataclasses (std)
    - enum (std)
    - uuid (std)
    - .regions.FigureRegion

Used By:
    - extractor.client: Builds QuestionRecord / MarkSchemeRecord
    - extractor.merge: Merge, dedup and pruning
    - pipeline.orchestrator: Persistence and indexing
    - storage.question_store: JSONL persistence
    - indexing.indexer: Vector metadata
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from .regions import FigureRegion

# Namespace for natural-key ids; fixed so ids survive restarts and re-runs
QUESTION_ID_NAMESPACE = uuid.UUID("6f1c5a2e-8d4b-5c7a-9e3f-2b1d0a9c8e7f")

NaturalKey = Tuple[int, str, str]


class Difficulty(str, Enum):
    """Difficulty band, derived from marks when the model omits it."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def from_marks(cls, marks: int) -> Difficulty:
        """
        Band a mark count: 1-3 easy, 4-6 medium, 7+ hard.

        Zero-mark stems are treated as easy.
        """
        if marks >= 7:
            return cls.HARD
        if marks >= 4:
            return cls.MEDIUM
        return cls.EASY

    @classmethod
    def parse(cls, value: Optional[str], *, marks: int = 0) -> Difficulty:
        """Parse a model-supplied value, falling back to the marks band."""
        if value:
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.from_marks(marks)


def question_id(year: int, paper: str, question_number: str) -> str:
    """
    Stable id for a natural key.

    The same key always maps to the same id, so the stored record and its
    vector share one identifier and vector upserts overwrite.

    Example:
        >>> question_id(2021, "s21", "1(a)") == question_id(2021, "s21", "1(a)")
        True
    """
    return str(uuid.uuid5(QUESTION_ID_NAMESPACE, f"{year}:{paper}:{question_number}"))


@dataclass(frozen=True, slots=True)
class MarkSchemeRecord:
    """
    Mark scheme for one question label. Never persisted on its own.

    Attributes:
        question_number: Canonical label shared with the question stream
        mark_scheme: Marking points text
        examiner_remarks: Optional examiner report commentary
    """

    question_number: str
    mark_scheme: str
    examiner_remarks: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate record on construction."""
        if not self.question_number:
            raise ValueError("question_number cannot be empty")


@dataclass(frozen=True, slots=True)
class QuestionRecord:
    """
    One gradable unit extracted from a question paper (immutable).

    Attributes:
        question_number: Canonical hierarchical label like "1(b)(ii)"
        text: Question text, may embed bracketed figure descriptions
        marks: Non-negative mark count (null input normalized to 0)
        topic: Member of the configured topic taxonomy
        difficulty: Difficulty band
        has_image: Whether the question relies on a figure
        figure: Figure region with absolute page (present iff has_image)
        mark_scheme: Attached by merge; empty until then
        examiner_remarks: Optional examiner commentary, attached by merge

    Invariants:
        - question_number is non-empty
        - marks >= 0
        - figure is not None if and only if has_image

    Example:
        >>> q = QuestionRecord(
        ...     question_number="1(a)",
        ...     text="Define acceleration.",
        ...     marks=1,
        ...     topic="Mechanics",
        ...     difficulty=Difficulty.EASY,
        ... )
        >>> q.with_mark_scheme("rate of change of velocity").mark_scheme
        'rate of change of velocity'
    """

    question_number: str
    text: str
    marks: int
    topic: str
    difficulty: Difficulty
    has_image: bool = False
    figure: Optional[FigureRegion] = None
    mark_scheme: str = ""
    examiner_remarks: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate record on construction."""
        if not self.question_number:
            raise ValueError("question_number cannot be empty")
        if self.marks < 0:
            raise ValueError(f"marks must be >= 0: {self.marks}")
        if self.has_image != (self.figure is not None):
            raise ValueError(
                f"{self.question_number}: has_image={self.has_image} "
                f"but figure={'set' if self.figure else 'missing'}"
            )

    def with_mark_scheme(
        self, mark_scheme: str, examiner_remarks: Optional[str] = None
    ) -> QuestionRecord:
        """Copy with mark scheme and remarks attached."""
        return replace(self, mark_scheme=mark_scheme, examiner_remarks=examiner_remarks)

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON storage."""
        result = {
            "question_number": self.question_number,
            "text": self.text,
            "marks": self.marks,
            "topic": self.topic,
            "difficulty": self.difficulty.value,
            "has_image": self.has_image,
            "mark_scheme": self.mark_scheme,
        }
        if self.figure is not None:
            result["figure"] = self.figure.to_dict()
        if self.examiner_remarks:
            result["examiner_remarks"] = self.examiner_remarks
        return result

    @classmethod
    def from_dict(cls, data: dict) -> QuestionRecord:
        """Deserialize from dictionary."""
        figure = data.get("figure")
        return cls(
            question_number=data["question_number"],
            text=data["text"],
            marks=data["marks"],
            topic=data["topic"],
            difficulty=Difficulty(data["difficulty"]),
            has_image=data.get("has_image", False),
            figure=FigureRegion.from_dict(figure) if figure else None,
            mark_scheme=data.get("mark_scheme", ""),
            examiner_remarks=data.get("examiner_remarks"),
        )


@dataclass(frozen=True, slots=True)
class StoredQuestion:
    """
    Persisted question, keyed by (year, paper, question_number).

    Attributes:
        id: Stable id derived from the natural key (see question_id)
        year: Exam year like 2021
        paper: Paper scope label like "9702_s21" (syllabus code, session, paper number)
        record: The merged question record
        image_url: URL-like path of the cropped figure, if any
        indexed: Whether the vector for this question has been upserted

    Invariants:
        - id == question_id(year, paper, record.question_number)
    """

    id: str
    year: int
    paper: str
    record: QuestionRecord
    image_url: Optional[str] = None
    indexed: bool = False

    def __post_init__(self) -> None:
        """Validate stored question on construction."""
        if not (2000 <= self.year <= 2100):
            raise ValueError(f"year must be 2000-2100: {self.year}")
        if not self.paper:
            raise ValueError("paper cannot be empty")
        expected = question_id(self.year, self.paper, self.record.question_number)
        if self.id != expected:
            raise ValueError(f"id does not match natural key: {self.id} != {expected}")

    @classmethod
    def from_record(
        cls,
        record: QuestionRecord,
        *,
        year: int,
        paper: str,
        image_url: Optional[str] = None,
    ) -> StoredQuestion:
        """Build the persisted form of a merged record."""
        return cls(
            id=question_id(year, paper, record.question_number),
            year=year,
            paper=paper,
            record=record,
            image_url=image_url,
        )

    @property
    def question_number(self) -> str:
        return self.record.question_number

    @property
    def natural_key(self) -> NaturalKey:
        """(year, paper, question_number) triple."""
        return (self.year, self.paper, self.record.question_number)

    def to_dict(self) -> dict:
        """Serialize to a flat dictionary (one JSONL line)."""
        result = {
            "id": self.id,
            "year": self.year,
            "paper": self.paper,
            **self.record.to_dict(),
            "indexed": self.indexed,
        }
        if self.image_url:
            result["image_url"] = self.image_url
        return result

    @classmethod
    def from_dict(cls, data: dict) -> StoredQuestion:
        """Deserialize from a flat dictionary."""
        return cls(
            id=data["id"],
            year=data["year"],
            paper=data["paper"],
            record=QuestionRecord.from_dict(data),
            image_url=data.get("image_url"),
            indexed=data.get("indexed", False),
        )

    def __repr__(self) -> str:
        """Concise representation for debugging."""
        return f"StoredQuestion({self.year} {self.paper} {self.question_number}, indexed={self.indexed})"
