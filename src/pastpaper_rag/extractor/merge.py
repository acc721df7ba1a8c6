"""
Module: extractor.merge

Purpose:
    Reconciles the question and mark scheme streams of one document set.
    Attaches schemes by question label, removes duplicate labels and drops
    zero-mark parent stubs whose marks live in their sub-parts. All
    functions are pure; they only log.

Key Functions:
    - attach_mark_schemes(): Lookup by label, sentinel when missing
    - deduplicate(): First occurrence of each label wins
    - prune_parent_stubs(): Drop zero-mark records that have children
    - merge(): attach -> deduplicate -> prune
    - unmatched_labels(): Labels present in only one stream

Dependencies:
    - common.labels: Parent/child label test

Used By:
    - pipeline.orchestrator: Merge stage
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from pastpaper_rag.common.labels import is_child_label
from pastpaper_rag.core.models import MarkSchemeRecord, QuestionRecord

logger = logging.getLogger(__name__)

MARK_SCHEME_NOT_FOUND = "Mark scheme not found"


@dataclass(frozen=True)
class UnmatchedLabels:
    """Labels that appear in only one of the two streams."""

    questions_without_scheme: Tuple[str, ...] = ()
    schemes_without_question: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.questions_without_scheme or self.schemes_without_question)

    def to_dict(self) -> dict:
        return {
            "questions_without_scheme": list(self.questions_without_scheme),
            "schemes_without_question": list(self.schemes_without_question),
        }


def _scheme_lookup(schemes: Iterable[MarkSchemeRecord]) -> Dict[str, MarkSchemeRecord]:
    lookup: Dict[str, MarkSchemeRecord] = {}
    for scheme in schemes:
        if scheme.question_number in lookup:
            logger.debug(f"Duplicate mark scheme for {scheme.question_number} ignored")
            continue
        lookup[scheme.question_number] = scheme
    return lookup


def attach_mark_schemes(
    questions: Sequence[QuestionRecord],
    schemes: Sequence[MarkSchemeRecord],
) -> List[QuestionRecord]:
    """
    Attach each question's mark scheme by label.

    The first scheme for a label wins. A question without a scheme keeps
    its place and gets MARK_SCHEME_NOT_FOUND.
    """
    lookup = _scheme_lookup(schemes)
    merged: List[QuestionRecord] = []
    for question in questions:
        scheme = lookup.get(question.question_number)
        if scheme is None:
            logger.warning(f"No mark scheme found for question {question.question_number}")
            merged.append(question.with_mark_scheme(MARK_SCHEME_NOT_FOUND))
        else:
            merged.append(question.with_mark_scheme(scheme.mark_scheme, scheme.examiner_remarks))
    return merged


def deduplicate(records: Sequence[QuestionRecord]) -> List[QuestionRecord]:
    """
    Keep the first record for each label, in input order.

    Example:
        >>> [r.question_number for r in deduplicate(records)]  # 1(a), 1(a), 1(b)
        ['1(a)', '1(b)']
    """
    seen: set[str] = set()
    unique: List[QuestionRecord] = []
    for record in records:
        if record.question_number in seen:
            logger.warning(f"Duplicate question number {record.question_number} (keeping first)")
            continue
        seen.add(record.question_number)
        unique.append(record)
    return unique


def prune_parent_stubs(records: Sequence[QuestionRecord]) -> List[QuestionRecord]:
    """
    Drop zero-mark records that have a hierarchical child.

    "3(a)" with 0 marks is dropped when "3(a)(i)" exists; a zero-mark
    record with no children is a genuine leaf and is kept.
    """
    labels = [record.question_number for record in records]
    kept: List[QuestionRecord] = []
    for record in records:
        if record.marks == 0 and any(is_child_label(label, record.question_number) for label in labels):
            logger.debug(f"Pruned zero-mark parent {record.question_number}")
            continue
        kept.append(record)
    return kept


def merge(
    questions: Sequence[QuestionRecord],
    schemes: Sequence[MarkSchemeRecord],
) -> List[QuestionRecord]:
    """
    Merge questions with mark schemes, then deduplicate and prune.

    Returns:
        Enriched records in first-seen order
    """
    attached = attach_mark_schemes(questions, schemes)
    unique = deduplicate(attached)
    pruned = prune_parent_stubs(unique)
    if len(pruned) != len(questions):
        logger.info(
            f"Merge: {len(questions)} extracted -> {len(unique)} unique -> {len(pruned)} kept"
        )
    return pruned


def unmatched_labels(
    questions: Sequence[QuestionRecord],
    schemes: Sequence[MarkSchemeRecord],
) -> UnmatchedLabels:
    """
    Labels present in only one stream, each listed once in first-seen order.

    Parent stubs are not reported as missing a scheme when one of their
    children has one.
    """
    question_labels = list(dict.fromkeys(q.question_number for q in questions))
    scheme_labels = list(dict.fromkeys(s.question_number for s in schemes))
    scheme_set = set(scheme_labels)
    question_set = set(question_labels)

    missing_scheme = tuple(
        label
        for label in question_labels
        if label not in scheme_set
        and not any(is_child_label(other, label) for other in scheme_labels)
    )
    orphan_schemes = tuple(label for label in scheme_labels if label not in question_set)
    return UnmatchedLabels(missing_scheme, orphan_schemes)
