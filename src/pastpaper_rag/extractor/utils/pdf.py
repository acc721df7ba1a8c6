"""
Module: extractor.utils.pdf

Purpose:
    PDF opening and page rendering utilities built on PyMuPDF.

Key Functions:
    - open_document(): Open a PDF from a path or bytes
    - PyMuPDFRasterizer.render_page(): Render a page to a PIL image

Dependencies:
    - fitz (PyMuPDF): PDF rendering
    - PIL.Image: Image handling

Used By:
    - extractor.chunker: Opens source documents
    - extractor.figures: Rasterizes pages before cropping
    - pipeline.orchestrator: Default rasterizer
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import fitz
from PIL import Image

from pastpaper_rag.core.capabilities import PageRasterizer

logger = logging.getLogger(__name__)

DocumentSource = Union[fitz.Document, bytes, str, Path]


def open_document(source: DocumentSource) -> fitz.Document:
    """
    Open a PDF document.

    Args:
        source: Already-open document (returned as is), raw PDF bytes, or
            a filesystem path.

    Returns:
        Open fitz.Document. The caller owns it and should close it unless
        it passed an open document in.

    Raises:
        FileNotFoundError: If a path does not exist.
        ValueError: If the data is not a readable PDF.
    """
    if isinstance(source, fitz.Document):
        return source
    if isinstance(source, (bytes, bytearray)):
        try:
            return fitz.open(stream=bytes(source), filetype="pdf")
        except (RuntimeError, ValueError) as e:
            raise ValueError(f"Not a readable PDF payload: {e}") from e

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"PDF not found: {path}")
    try:
        return fitz.open(path)
    except (RuntimeError, ValueError) as e:
        raise ValueError(f"Not a readable PDF: {path}: {e}") from e


class PyMuPDFRasterizer(PageRasterizer):
    """
    Renders PDF pages with PyMuPDF.

    Pages are rendered in RGB without alpha, at ``scale`` times the
    72 DPI base resolution.

    Example:
        >>> rasterizer = PyMuPDFRasterizer()
        >>> image = rasterizer.render_page(doc, 0, scale=2.0)
        >>> image.size
        (1190, 1684)
    """

    def render_page(self, document: fitz.Document, page_index: int, scale: float) -> Image.Image:
        if not 0 <= page_index < document.page_count:
            raise IndexError(
                f"Page index {page_index} outside document of {document.page_count} pages"
            )
        if scale <= 0:
            raise ValueError(f"scale must be > 0: {scale}")

        page = document[page_index]
        matrix = fitz.Matrix(scale, scale)
        pix = page.get_pixmap(matrix=matrix, alpha=False, colorspace=fitz.csRGB)
        logger.debug(f"Rendered page {page_index + 1} at {scale}x: {pix.width}x{pix.height}")
        return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
