"""Centralized threshold and magic number configuration.

This module contains the empirically tuned constants used throughout
extraction, figure cropping, pacing and retrieval. Having these in one
place makes tuning easier; the config dataclasses take their defaults
from here and callers may override any of them.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class FigureThresholds:
    """Thresholds for figure regions and cropping."""

    normalized_scale: int = 1000  # Model bounding boxes use a 0-1000 grid
    min_region_span: int = 20  # Smaller spans are barcodes/header noise
    padding_ratio: float = 0.02  # 2% of the box span added on each side
    render_scale: float = 2.0  # Rasterize at 2x for legibility


@dataclass
class ExtractionThresholds:
    """Thresholds for chunked LLM extraction."""

    chunk_pages: int = 5  # Pages per generation request
    retries: int = 2  # Retries after the first attempt
    parse_backoff_s: float = 5.0  # Fixed wait after malformed output or timeout
    rate_limit_backoff_s: float = 10.0  # First wait after a 429, doubles each time
    rate_limit_backoff_max_s: float = 120.0
    generation_timeout_s: float = 180.0
    max_output_tokens: int = 8192


@dataclass
class PacingThresholds:
    """Courtesy delays between external calls."""

    chunk_delay_s: float = 5.0  # Between consecutive chunks of one document
    stage_delay_s: float = 5.0  # Between question and mark scheme extraction
    set_delay_s: float = 10.0  # Between document sets


@dataclass
class IndexThresholds:
    """Thresholds for embeddings and vector upserts."""

    embedding_dimensions: int = 3072  # gemini-embedding-001
    upsert_batch_size: int = 100  # Provider-imposed batch cap


@dataclass
class RetrievalThresholds:
    """Thresholds for the serving-time retrieval path."""

    default_top_k: int = 5
    context_top_k: int = 3
    max_context_chars: int = 6000  # Whole context block budget
    max_field_chars: int = 1500  # Per text field inside one section
    search_timeout_s: float = 5.0


# Global instances for easy import
FIGURE_THRESHOLDS = FigureThresholds()
EXTRACTION_THRESHOLDS = ExtractionThresholds()
PACING_THRESHOLDS = PacingThresholds()
INDEX_THRESHOLDS = IndexThresholds()
RETRIEVAL_THRESHOLDS = RetrievalThresholds()
