"""
Module: extractor.config

Purpose:
    Configuration dataclasses for chunked extraction and figure cropping.
    Provides immutable settings for chunk size, retry policy, timeouts,
    topic taxonomy and crop geometry.

Key Classes:
    - ExtractionConfig: Chunking, retry and response settings
    - FigureConfig: Rasterization scale, padding and region noise filter

Dependencies:
    - dataclasses: For frozen dataclass support

Used By:
    - extractor.client: Uses ExtractionConfig for retries and taxonomy
    - extractor.figures: Uses FigureConfig for cropping
    - pipeline.config: Nests both in IngestConfig
"""

from dataclasses import dataclass, field
from typing import Tuple

from pastpaper_rag.common.thresholds import EXTRACTION_THRESHOLDS, FIGURE_THRESHOLDS, PACING_THRESHOLDS
from pastpaper_rag.common.topics import DEFAULT_TOPICS


@dataclass(frozen=True)
class FigureConfig:
    """
    Configuration for figure cropping.

    Attributes:
        scale: Rasterization zoom relative to 72 DPI. Must be >= 2.0 so
            cropped figures stay legible.
        padding_ratio: Fraction of the box span added on each side before
            clamping (default 0.02).
        min_region_span: Smallest accepted region span on the 0-1000 grid
            (default 20). Smaller regions are treated as noise.
    """
    scale: float = FIGURE_THRESHOLDS.render_scale
    padding_ratio: float = FIGURE_THRESHOLDS.padding_ratio
    min_region_span: int = FIGURE_THRESHOLDS.min_region_span

    def __post_init__(self) -> None:
        if self.scale < 2.0:
            raise ValueError(f"scale must be >= 2.0, got {self.scale}")
        if not 0 <= self.padding_ratio < 0.5:
            raise ValueError(f"padding_ratio must be in [0, 0.5), got {self.padding_ratio}")
        if self.min_region_span < 1:
            raise ValueError(f"min_region_span must be >= 1, got {self.min_region_span}")


@dataclass(frozen=True)
class ExtractionConfig:
    """
    Configuration for structured extraction.

    Attributes:
        chunk_pages: Pages per generation request (default 5)
        retries: Retries after the first attempt (default 2)
        parse_backoff_s: Fixed wait before retrying malformed output or a
            timed out call (default 5s)
        rate_limit_backoff_s: First wait after a rate limit; doubles on
            each further retry (default 10s)
        rate_limit_backoff_max_s: Cap for the escalating wait (default 120s)
        generation_timeout_s: Bound for one generation attempt (default 180s)
        chunk_delay_s: Pause between consecutive chunks of one document
        max_output_tokens: Response token budget passed to the model
        topics: Allowed topic labels
        min_region_span: Smallest accepted figure region span
    """
    chunk_pages: int = EXTRACTION_THRESHOLDS.chunk_pages
    retries: int = EXTRACTION_THRESHOLDS.retries
    parse_backoff_s: float = EXTRACTION_THRESHOLDS.parse_backoff_s
    rate_limit_backoff_s: float = EXTRACTION_THRESHOLDS.rate_limit_backoff_s
    rate_limit_backoff_max_s: float = EXTRACTION_THRESHOLDS.rate_limit_backoff_max_s
    generation_timeout_s: float = EXTRACTION_THRESHOLDS.generation_timeout_s
    chunk_delay_s: float = PACING_THRESHOLDS.chunk_delay_s
    max_output_tokens: int = EXTRACTION_THRESHOLDS.max_output_tokens
    topics: Tuple[str, ...] = field(default=DEFAULT_TOPICS)
    min_region_span: int = FIGURE_THRESHOLDS.min_region_span

    def __post_init__(self) -> None:
        if self.chunk_pages < 1:
            raise ValueError(f"chunk_pages must be >= 1, got {self.chunk_pages}")
        if self.retries < 0:
            raise ValueError(f"retries must be >= 0, got {self.retries}")
        if self.generation_timeout_s <= 0:
            raise ValueError(f"generation_timeout_s must be > 0, got {self.generation_timeout_s}")
        for name in ("parse_backoff_s", "rate_limit_backoff_s", "rate_limit_backoff_max_s", "chunk_delay_s"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if not self.topics:
            raise ValueError("topics cannot be empty")

    def rate_limit_delay(self, retry_number: int) -> float:
        """
        Escalating wait before the given retry (1-based).

        Example:
            >>> ExtractionConfig().rate_limit_delay(1), ExtractionConfig().rate_limit_delay(2)
            (10.0, 20.0)
        """
        delay = self.rate_limit_backoff_s * (2 ** (retry_number - 1))
        return min(delay, self.rate_limit_backoff_max_s)
