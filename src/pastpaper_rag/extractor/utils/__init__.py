"""PDF helpers for the extractor."""

from .pdf import PyMuPDFRasterizer, open_document

__all__ = ["PyMuPDFRasterizer", "open_document"]
