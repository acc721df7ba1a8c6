"""
Module: extractor.chunker

Purpose:
    Splits a multi-page PDF into fixed-size page windows so each
    generation request stays inside the model's context and rate limits.
    Each chunk is a standalone PDF carrying its own start page, which the
    extraction client uses to translate chunk-relative page numbers.

Key Functions:
    - chunk_ranges(): Pure page-range computation
    - split_document(): Build DocumentChunk payloads with PyMuPDF

Dependencies:
    - fitz (PyMuPDF): Page copying via insert_pdf

Used By:
    - extractor.client: extract_document()
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import fitz

from pastpaper_rag.common.thresholds import EXTRACTION_THRESHOLDS
from pastpaper_rag.core.models import DocumentChunk

from .utils.pdf import DocumentSource, open_document

logger = logging.getLogger(__name__)


def chunk_ranges(page_count: int, chunk_size: int) -> List[Tuple[int, int]]:
    """
    Compute ``[start, end)`` page windows covering ``[0, page_count)``.

    Args:
        page_count: Pages in the document (0 allowed).
        chunk_size: Pages per window.

    Returns:
        ``ceil(page_count / chunk_size)`` sequential, non-overlapping
        windows. Empty for a zero-page document.

    Raises:
        ValueError: If chunk_size < 1 or page_count < 0.

    Example:
        >>> chunk_ranges(12, 5)
        [(0, 5), (5, 10), (10, 12)]
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1: {chunk_size}")
    if page_count < 0:
        raise ValueError(f"page_count must be >= 0: {page_count}")
    return [
        (start, min(start + chunk_size, page_count))
        for start in range(0, page_count, chunk_size)
    ]


def split_document(
    document: DocumentSource,
    chunk_size: int = EXTRACTION_THRESHOLDS.chunk_pages,
    *,
    source: Optional[Path] = None,
) -> List[DocumentChunk]:
    """
    Split a PDF into page-window chunks.

    Args:
        document: Open document, PDF bytes, or path.
        chunk_size: Pages per chunk (default 5).
        source: Path recorded on each chunk for logs. Defaults to the
            document path when one was given.

    Returns:
        Chunks in page order. A zero-page document yields no chunks.

    Raises:
        ValueError: If chunk_size < 1 or the data is not a PDF.
        FileNotFoundError: If a path does not exist.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1: {chunk_size}")
    if source is None and isinstance(document, (str, Path)):
        source = Path(document)

    doc = open_document(document)
    owns_document = doc is not document
    try:
        ranges = chunk_ranges(doc.page_count, chunk_size)
        chunks: List[DocumentChunk] = []
        for start, end in ranges:
            sub = fitz.open()
            try:
                sub.insert_pdf(doc, from_page=start, to_page=end - 1)
                payload = sub.tobytes()
            finally:
                sub.close()
            chunks.append(DocumentChunk(start_page=start, end_page=end, payload=payload, source=source))

        logger.debug(
            f"Split {source.name if source else 'document'} ({doc.page_count} pages) "
            f"into {len(chunks)} chunk(s) of <= {chunk_size} pages"
        )
        return chunks
    finally:
        if owns_document:
            doc.close()
