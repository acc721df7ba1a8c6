"""
Tests for pipeline.discovery

Test Coverage:
- discover_document_sets(): pairing, scope labels, ordering, filtering
- find_mark_scheme_pdf(): counterpart lookup across directories
"""

from pathlib import Path

from conftest import write_pdf
from pastpaper_rag.pipeline.discovery import discover_document_sets, find_mark_scheme_pdf


def test_discover_when_root_missing_then_creates_and_returns_empty(tmp_path):
    root = tmp_path / "past-papers"
    assert discover_document_sets(root) == []
    assert root.is_dir()


def test_discover_pairs_papers_and_sorts_newest_first(tmp_path):
    # Arrange
    for name in (
        "2021/9702_s21_qp_22.pdf",
        "2021/9702_s21_ms_22.pdf",
        "2021/9702_s21_qp_21.pdf",
        "2021/9702_s21_ms_21.pdf",
        "2023/9702_w23_qp_42.pdf",
        "2023/9702_w23_ms_42.pdf",
    ):
        write_pdf(tmp_path / name)

    # Act
    sets = discover_document_sets(tmp_path)

    # Assert
    assert [(s.year, s.paper) for s in sets] == [(2023, "9702_w42"), (2021, "9702_s21"), (2021, "9702_s22")]
    assert sets[0].mark_scheme == tmp_path / "2023" / "9702_w23_ms_42.pdf"
    assert sets[0].label == "2023 9702_w42"


def test_discover_skips_unpaired_documents(tmp_path, caplog):
    # Arrange
    write_pdf(tmp_path / "9702_s22_qp_11.pdf")
    write_pdf(tmp_path / "9702_s22_ms_12.pdf")
    write_pdf(tmp_path / "9702_s22_qp_13.pdf")
    write_pdf(tmp_path / "9702_s22_ms_13.pdf")

    # Act
    sets = discover_document_sets(tmp_path)

    # Assert
    assert [s.paper for s in sets] == ["9702_s13"]
    assert "no mark scheme found" in caplog.text
    assert "no question paper found" in caplog.text


def test_discover_finds_mark_scheme_in_other_directory(tmp_path):
    write_pdf(tmp_path / "qp" / "9702_m20_qp_12.pdf")
    write_pdf(tmp_path / "ms" / "9702_m20_ms_12.pdf")
    sets = discover_document_sets(tmp_path)
    assert len(sets) == 1
    assert sets[0].mark_scheme.parent.name == "ms"


def test_discover_filters_by_exam_code_and_ignores_other_files(tmp_path):
    # Arrange
    write_pdf(tmp_path / "9702_s21_qp_21.pdf")
    write_pdf(tmp_path / "9702_s21_ms_21.pdf")
    write_pdf(tmp_path / "9701_s21_qp_21.pdf")
    write_pdf(tmp_path / "9701_s21_ms_21.pdf")
    write_pdf(tmp_path / "syllabus.pdf")
    (tmp_path / "notes.txt").write_text("ignore me")

    # Act
    sets = discover_document_sets(tmp_path, exam_code="9701")

    # Assert
    assert [(s.exam_code, s.paper) for s in sets] == [("9701", "9701_s21")]


def test_find_mark_scheme_pdf_when_absent_then_none(tmp_path):
    qp = write_pdf(tmp_path / "9702_s24_qp_21.pdf")
    assert find_mark_scheme_pdf(qp) is None
    assert find_mark_scheme_pdf(Path("9702_s24_ms_21.pdf")) is None


def test_discover_keeps_syllabi_with_same_session_apart(tmp_path):
    # Arrange
    for code in ("9702", "9709"):
        write_pdf(tmp_path / f"{code}_s21_qp_21.pdf")
        write_pdf(tmp_path / f"{code}_s21_ms_21.pdf")

    # Act
    sets = discover_document_sets(tmp_path)

    # Assert
    assert [(s.year, s.paper) for s in sets] == [(2021, "9702_s21"), (2021, "9709_s21")]
    assert len({s.label for s in sets}) == 2
