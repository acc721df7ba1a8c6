"""
Tests for common.path_utils

Test Coverage:
- parse_paper_filename(): Cambridge filename convention
- counterpart_name(): qp <-> ms pairing
- figure_filename(): deterministic figure names
"""

from pathlib import Path

import pytest

from pastpaper_rag.common.path_utils import (
    counterpart_name,
    extract_paper_prefix,
    figure_filename,
    parse_paper_filename,
    safe_component,
)


class TestParsePaperFilename:
    """Tests for parse_paper_filename()."""

    def test_parse_when_question_paper_then_returns_scope(self):
        # Act
        info = parse_paper_filename("9702_s24_qp_21.pdf")

        # Assert
        assert info is not None
        assert info.exam_code == "9702"
        assert info.year == 2024
        assert info.kind == "qp"
        assert info.paper == "9702_s21"

    def test_parse_when_path_given_then_uses_name(self):
        info = parse_paper_filename(Path("/data/2023/9702_W23_MS_42.pdf"))
        assert info is not None
        assert (info.year, info.paper, info.kind) == (2023, "9702_w42", "ms")

    @pytest.mark.parametrize("name", ["notes.pdf", "9702_s24_qp_21.txt", "9702_x24_qp_21.pdf", "970_s24_qp_1.pdf"])
    def test_parse_when_not_past_paper_then_returns_none(self, name):
        assert parse_paper_filename(name) is None


def test_counterpart_name_swaps_kind():
    assert counterpart_name("9702_s24_qp_21.pdf") == "9702_s24_ms_21.pdf"
    assert counterpart_name("9702_s24_ms_21.pdf") == "9702_s24_qp_21.pdf"
    assert counterpart_name("syllabus.pdf") is None


def test_extract_paper_prefix_strips_kind_and_number():
    assert extract_paper_prefix("9702_s22_qp_12.pdf") == "9702_s22"
    assert extract_paper_prefix("readme.pdf") == "readme"


def test_safe_component_replaces_unsafe_characters():
    assert safe_component("Paper 21") == "Paper_21"
    assert safe_component("1(b)(ii)") == "1_b__ii_"


def test_figure_filename_is_deterministic():
    first = figure_filename(2024, "s21", "3(a)(i)")
    second = figure_filename(2024, "s21", "3(a)(i)")
    assert first == second == "2024_s21_3_a__i_.png"
