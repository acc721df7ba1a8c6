"""
Module: chunks

Purpose:
    Provides the DocumentChunk dataclass - a contiguous page window of a
    source PDF plus its serialized bytes. Owns the chunk-relative to
    absolute page translation so it never happens as inline arithmetic.

Key Functions:
    - DocumentChunk.to_absolute_page(): Chunk-relative page -> document page

Dependencies:
    - dataclasses (std)

Used By:
    - extractor.chunker: Produces chunks
    - extractor.client: Sends payloads, translates figure pages
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True, slots=True)
class DocumentChunk:
    """
    Page range ``[start_page, end_page)`` of a source document.

    Attributes:
        start_page: 0-based first page (inclusive)
        end_page: 0-based end page (exclusive)
        payload: Standalone PDF bytes holding just these pages
        source: Source document path (for logs only)

    Invariants:
        - 0 <= start_page < end_page

    Example:
        >>> chunk = DocumentChunk(start_page=5, end_page=10, payload=b"%PDF")
        >>> chunk.to_absolute_page(1)
        6
    """

    start_page: int
    end_page: int
    payload: bytes = field(repr=False)
    source: Optional[Path] = None

    def __post_init__(self) -> None:
        """Validate chunk on construction."""
        if self.start_page < 0:
            raise ValueError(f"start_page must be >= 0: {self.start_page}")
        if self.end_page <= self.start_page:
            raise ValueError(
                f"end_page must be > start_page: {self.end_page} <= {self.start_page}"
            )

    @property
    def page_count(self) -> int:
        return self.end_page - self.start_page

    @property
    def page_range(self) -> tuple[int, int]:
        """``(start_page, end_page)`` for error reports."""
        return (self.start_page, self.end_page)

    def to_absolute_page(self, relative_page: int) -> int:
        """
        Translate a 1-based chunk-relative page to a 1-based document page.

        Args:
            relative_page: Page number as seen by the model (1 = first page
                of this chunk)

        Returns:
            1-based page number within the whole document

        Raises:
            ValueError: If the page is not inside this chunk
        """
        if not 1 <= relative_page <= self.page_count:
            raise ValueError(
                f"Page {relative_page} outside chunk of {self.page_count} pages"
            )
        return self.start_page + relative_page

    def describe(self) -> str:
        """Human-readable 1-based page span, e.g. "pages 6-10"."""
        return f"pages {self.start_page + 1}-{self.end_page}"
