"""
Extractor: PDF chunking, structured extraction, merge and figure cropping.

Typical flow for one document set:
    questions = await client.extract_document(qp_path, DocumentKind.QUESTIONS)
    schemes = await client.extract_document(ms_path, DocumentKind.MARK_SCHEMES)
    merged = merge(questions, schemes)
"""

from .chunker import chunk_ranges, split_document
from .client import (
    DocumentKind,
    ExtractionFailure,
    ResponseFormatError,
    StructuredExtractionClient,
    strip_code_fences,
)
from .config import ExtractionConfig, FigureConfig
from .figures import crop_figure, figure_url
from .merge import MARK_SCHEME_NOT_FOUND, merge, unmatched_labels

__all__ = [
    "DocumentKind",
    "ExtractionConfig",
    "ExtractionFailure",
    "FigureConfig",
    "MARK_SCHEME_NOT_FOUND",
    "ResponseFormatError",
    "StructuredExtractionClient",
    "chunk_ranges",
    "crop_figure",
    "figure_url",
    "merge",
    "split_document",
    "strip_code_fences",
    "unmatched_labels",
]
