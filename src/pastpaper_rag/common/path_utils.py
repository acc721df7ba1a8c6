"""Path and filename utilities.

Provides shared functions for parsing Cambridge-style past paper filenames,
pairing question papers with mark schemes and building deterministic
artifact names.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional

PaperKind = Literal["qp", "ms"]

# 9702_s24_qp_21.pdf / 9702_w23_ms_42.pdf
PAPER_FILENAME_RE = re.compile(
    r"^(?P<code>\d{4})_(?P<session>[smw])(?P<yy>\d{2})_(?P<kind>qp|ms)_(?P<paper>\d{1,2})\.pdf$",
    re.IGNORECASE,
)

_UNSAFE_CHARS_RE = re.compile(r"[^\w.-]")


@dataclass(frozen=True)
class PaperFileInfo:
    """
    Parsed components of a past paper filename.

    Attributes:
        exam_code: Syllabus code (e.g. "9702").
        session: Exam session letter: s (summer), w (winter), m (march).
        year: Four digit year derived from the two digit suffix.
        kind: "qp" for question paper, "ms" for mark scheme.
        paper_number: Paper/variant number as written (e.g. "21").
    """
    exam_code: str
    session: str
    year: int
    kind: PaperKind
    paper_number: str

    @property
    def paper(self) -> str:
        """Paper scope label: syllabus code, session letter and paper number, e.g. "9702_s21"."""
        return f"{self.exam_code}_{self.session}{self.paper_number}"


def parse_paper_filename(filename: str | Path) -> Optional[PaperFileInfo]:
    """Parse a past paper filename into its components.

    Args:
        filename: Filename or Path object.

    Returns:
        PaperFileInfo, or None if the name does not follow the convention.

    Examples:
        >>> info = parse_paper_filename("9702_s24_qp_21.pdf")
        >>> (info.year, info.paper, info.kind)
        (2024, '9702_s21', 'qp')
        >>> parse_paper_filename("notes.pdf") is None
        True
    """
    if isinstance(filename, Path):
        filename = filename.name

    match = PAPER_FILENAME_RE.match(filename)
    if not match:
        return None

    return PaperFileInfo(
        exam_code=match.group("code"),
        session=match.group("session").lower(),
        year=2000 + int(match.group("yy")),
        kind=match.group("kind").lower(),  # type: ignore[arg-type]
        paper_number=match.group("paper"),
    )


def extract_paper_prefix(filename: str | Path) -> str:
    """Extract the standard prefix from an exam paper filename.

    Extracts the portion before the paper type marker (_qp_ or _ms_).
    Used for matching question papers with mark schemes in log output.

    Args:
        filename: Filename or Path object to extract prefix from.

    Returns:
        Extracted prefix string, or original filename stem if no marker found.

    Examples:
        >>> extract_paper_prefix("9702_s22_qp_12.pdf")
        '9702_s22'
        >>> extract_paper_prefix(Path("/data/9702_m20_ms_11.pdf"))
        '9702_m20'
    """
    if isinstance(filename, Path):
        filename = filename.name

    match = re.match(r"^(.+?)_(?:qp|ms)_", filename)
    if match:
        return match.group(1)

    return Path(filename).stem


def counterpart_name(filename: str | Path) -> Optional[str]:
    """Return the filename of the paired document (qp <-> ms).

    Examples:
        >>> counterpart_name("9702_s24_qp_21.pdf")
        '9702_s24_ms_21.pdf'
        >>> counterpart_name("9702_s24_ms_21.pdf")
        '9702_s24_qp_21.pdf'
    """
    if isinstance(filename, Path):
        filename = filename.name
    if "_qp_" in filename:
        return filename.replace("_qp_", "_ms_")
    if "_ms_" in filename:
        return filename.replace("_ms_", "_qp_")
    return None


def safe_component(value: str) -> str:
    """Make a string safe for use inside a filename.

    Whitespace runs collapse to one underscore; any other character
    outside ``[A-Za-z0-9_.-]`` becomes an underscore.

    Examples:
        >>> safe_component("Paper 21")
        'Paper_21'
        >>> safe_component("1(b)(ii)")
        '1_b__ii_'
    """
    collapsed = re.sub(r"\s+", "_", value.strip())
    return _UNSAFE_CHARS_RE.sub("_", collapsed)


def figure_filename(year: int, paper: str, question_number: str) -> str:
    """Deterministic PNG filename for a question's figure.

    The same (year, paper, question_number) always yields the same name so
    re-extraction overwrites instead of accumulating files.

    Examples:
        >>> figure_filename(2024, "9702_s21", "3(a)(i)")
        '2024_9702_s21_3_a__i_.png'
    """
    return f"{year}_{safe_component(paper)}_{safe_component(question_number)}.png"
