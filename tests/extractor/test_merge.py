"""
Tests for extractor.merge

Test Coverage:
- attach_mark_schemes(): lookup by label, sentinel when missing
- deduplicate(): first occurrence wins
- prune_parent_stubs(): zero-mark parents dropped, zero-mark leaves kept
- unmatched_labels(): diagnostics for both streams
"""

from pastpaper_rag.core.models import Difficulty, MarkSchemeRecord, QuestionRecord
from pastpaper_rag.extractor.merge import (
    MARK_SCHEME_NOT_FOUND,
    attach_mark_schemes,
    deduplicate,
    merge,
    prune_parent_stubs,
    unmatched_labels,
)


def _q(number, marks=2, text=None):
    return QuestionRecord(
        question_number=number,
        text=text or f"Question {number}",
        marks=marks,
        topic="Waves",
        difficulty=Difficulty.from_marks(marks),
    )


def _ms(number, scheme=None, remarks=None):
    return MarkSchemeRecord(number, scheme or f"Scheme {number}", remarks)


class TestAttachMarkSchemes:
    """Tests for attach_mark_schemes()."""

    def test_attach_when_scheme_exists_then_copies_scheme_and_remarks(self):
        merged = attach_mark_schemes([_q("1(a)")], [_ms("1(a)", "B1 wavelength", "Well answered")])
        assert merged[0].mark_scheme == "B1 wavelength"
        assert merged[0].examiner_remarks == "Well answered"

    def test_attach_when_scheme_missing_then_uses_sentinel(self):
        merged = attach_mark_schemes([_q("1(a)"), _q("1(b)")], [_ms("1(a)")])
        assert [q.question_number for q in merged] == ["1(a)", "1(b)"]
        assert merged[1].mark_scheme == MARK_SCHEME_NOT_FOUND

    def test_attach_when_duplicate_schemes_then_first_wins(self):
        merged = attach_mark_schemes([_q("2")], [_ms("2", "first"), _ms("2", "second")])
        assert merged[0].mark_scheme == "first"


class TestDeduplicate:
    """Tests for deduplicate()."""

    def test_deduplicate_keeps_first_occurrence(self):
        # Arrange
        records = [_q("1(a)", text="first copy"), _q("1(a)", text="second copy"), _q("1(b)")]

        # Act
        unique = deduplicate(records)

        # Assert
        assert [r.question_number for r in unique] == ["1(a)", "1(b)"]
        assert unique[0].text == "first copy"


class TestPruneParentStubs:
    """Tests for prune_parent_stubs()."""

    def test_prune_when_zero_mark_parent_has_child_then_dropped(self):
        kept = prune_parent_stubs([_q("3(a)", marks=0), _q("3(a)(i)", marks=2)])
        assert [r.question_number for r in kept] == ["3(a)(i)"]

    def test_prune_when_zero_mark_leaf_then_kept(self):
        kept = prune_parent_stubs([_q("4(a)", marks=0)])
        assert [r.question_number for r in kept] == ["4(a)"]

    def test_prune_when_parent_has_marks_then_kept(self):
        kept = prune_parent_stubs([_q("5(a)", marks=1), _q("5(a)(i)", marks=2)])
        assert [r.question_number for r in kept] == ["5(a)", "5(a)(i)"]

    def test_prune_when_similar_prefix_only_then_kept(self):
        """11(a) does not make 1 a parent stub."""
        kept = prune_parent_stubs([_q("1", marks=0), _q("11(a)", marks=2)])
        assert [r.question_number for r in kept] == ["1", "11(a)"]


class TestMerge:
    """Tests for merge()."""

    def test_merge_runs_attach_dedup_and_prune(self):
        # Arrange
        questions = [_q("1(a)", text="kept"), _q("1(a)", text="dropped"), _q("2", marks=0), _q("2(a)"), _q("3")]
        schemes = [_ms("1(a)"), _ms("2(a)")]

        # Act
        merged = merge(questions, schemes)

        # Assert
        assert [q.question_number for q in merged] == ["1(a)", "2(a)", "3"]
        assert merged[0].text == "kept"
        assert merged[0].mark_scheme == "Scheme 1(a)"
        assert merged[2].mark_scheme == MARK_SCHEME_NOT_FOUND


class TestUnmatchedLabels:
    """Tests for unmatched_labels()."""

    def test_unmatched_labels_reports_both_directions(self):
        # Arrange
        questions = [_q("1(a)"), _q("1(b)"), _q("2", marks=0), _q("2(a)")]
        schemes = [_ms("1(a)"), _ms("2(a)"), _ms("3")]

        # Act
        unmatched = unmatched_labels(questions, schemes)

        # Assert
        assert unmatched.questions_without_scheme == ("1(b)",)
        assert unmatched.schemes_without_question == ("3",)
        assert not unmatched.is_empty

    def test_unmatched_labels_when_streams_agree_then_empty(self):
        unmatched = unmatched_labels([_q("1")], [_ms("1")])
        assert unmatched.is_empty
        assert unmatched.to_dict() == {"questions_without_scheme": [], "schemes_without_question": []}
