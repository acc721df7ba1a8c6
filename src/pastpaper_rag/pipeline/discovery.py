"""
Module: pipeline.discovery

Purpose:
    Finds paired question paper / mark scheme PDFs under a data root.
    Filenames follow the Cambridge convention
    ``<code>_<s|m|w><yy>_<qp|ms>_<n>.pdf``; files may sit in per-year
    folders or anywhere below the root. A question paper without its mark
    scheme (or the reverse) is skipped with a warning.

Key Functions:
    - discover_document_sets(): Root directory -> sorted DocumentSets
    - find_mark_scheme_pdf(): Counterpart lookup for one question paper

Dependencies:
    - common.path_utils: Filename parsing and qp/ms pairing

Used By:
    - pipeline.cli
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from pastpaper_rag.common.path_utils import (
    PaperFileInfo,
    counterpart_name,
    extract_paper_prefix,
    parse_paper_filename,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentSet:
    """
    One (year, paper) scope: a question paper and its mark scheme.

    Attributes:
        year: Exam year like 2024
        paper: Scope label like "9702_s21" (syllabus code, session, paper number)
        exam_code: Syllabus code like "9702"
        question_paper: Question paper PDF
        mark_scheme: Mark scheme PDF
    """
    year: int
    paper: str
    exam_code: str
    question_paper: Path
    mark_scheme: Path

    @property
    def label(self) -> str:
        return f"{self.year} {self.paper}"


def find_mark_scheme_pdf(
    question_pdf_path: Path,
    search_dirs: Optional[Iterable[Path]] = None,
) -> Optional[Path]:
    """
    Find the mark scheme PDF for a question paper.

    Looks for the same name with ``_ms_`` instead of ``_qp_``, first in the
    question paper's directory, then in ``search_dirs``.

    Example:
        >>> find_mark_scheme_pdf(Path("data/2024/9702_s24_qp_21.pdf"))
        PosixPath('data/2024/9702_s24_ms_21.pdf')
    """
    ms_name = counterpart_name(question_pdf_path)
    if ms_name is None or "_ms_" not in ms_name:
        return None

    candidate = question_pdf_path.parent / ms_name
    if candidate.exists():
        return candidate

    for directory in search_dirs or ():
        candidate = directory / ms_name
        if candidate.exists():
            return candidate
    return None


def _scope_key(info: PaperFileInfo) -> Tuple[str, int, str]:
    return (info.exam_code, info.year, info.paper)


def discover_document_sets(root: Path, exam_code: Optional[str] = None) -> List[DocumentSet]:
    """
    Discover paired document sets below ``root``.

    Args:
        root: Data directory (created when missing)
        exam_code: Only consider files for this syllabus code

    Returns:
        Document sets, newest year first, then by paper label
    """
    root = Path(root)
    if not root.exists():
        logger.info(f"Creating data directory {root}")
        root.mkdir(parents=True, exist_ok=True)
        return []

    question_papers: Dict[Tuple[str, int, str], Tuple[PaperFileInfo, Path]] = {}
    mark_schemes: Dict[Tuple[str, int, str], Path] = {}
    directories = set()

    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix.lower() != ".pdf":
            continue
        info = parse_paper_filename(path)
        if info is None:
            logger.debug(f"Ignoring {path.name}: not a past paper filename")
            continue
        if exam_code and info.exam_code != exam_code:
            continue
        directories.add(path.parent)
        key = _scope_key(info)
        if info.kind == "qp":
            question_papers.setdefault(key, (info, path))
        else:
            mark_schemes.setdefault(key, path)

    sets: List[DocumentSet] = []
    for key, (info, qp_path) in question_papers.items():
        ms_path = find_mark_scheme_pdf(qp_path, sorted(directories)) or mark_schemes.get(key)
        if ms_path is None:
            logger.warning(f"Skipping {qp_path.name}: no mark scheme found")
            continue
        sets.append(
            DocumentSet(
                year=info.year,
                paper=info.paper,
                exam_code=info.exam_code,
                question_paper=qp_path,
                mark_scheme=ms_path,
            )
        )

    for key, ms_path in mark_schemes.items():
        if key not in question_papers:
            logger.warning(f"Skipping {ms_path.name}: no question paper found")

    sets.sort(key=lambda s: (-s.year, s.paper, s.exam_code))
    logger.info(
        f"Discovered {len(sets)} document set(s) under {root}",
        extra={"document_sets": [f"{extract_paper_prefix(s.question_paper)} {s.paper}" for s in sets]},
    )
    return sets
