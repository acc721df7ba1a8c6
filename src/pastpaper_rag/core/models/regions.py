"""
Module: regions

Purpose:
    Provides the FigureRegion dataclass - a figure's bounding box on the
    model's normalized 0-1000 grid plus the page it sits on. Replaces the
    loose ``[ymin, xmin, ymax, xmax]`` list and separate page number that
    come back from the extraction model.

Key Functions:
    - FigureRegion.try_parse(box, page): Validate raw model output
    - FigureRegion.with_page(page): Copy with a translated page number
    - FigureRegion.to_dict() / FigureRegion.from_dict(): Serialization

Dependencies:
    - dataclasses (std)

Used By:
    - core.models.records.QuestionRecord
    - extractor.client: Region validation and page translation
    - extractor.figures: Cropping
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Sequence

from pastpaper_rag.common.thresholds import FIGURE_THRESHOLDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FigureRegion:
    """
    Figure bounding box on a normalized grid.

    Coordinates use the model's convention: ``[ymin, xmin, ymax, xmax]``
    on a 0-1000 scale, independent of the page's real size.

    Attributes:
        ymin: Top edge (0-1000)
        xmin: Left edge (0-1000)
        ymax: Bottom edge (0-1000)
        xmax: Right edge (0-1000)
        page: 1-based page number. Chunk-relative while inside the
            extraction client, absolute everywhere else.
        min_span: Smallest accepted height/width. Smaller boxes are
            barcodes, page headers or other noise.

    Invariants:
        - 0 <= coordinates <= 1000
        - ymax > ymin and xmax > xmin
        - (ymax - ymin) >= min_span and (xmax - xmin) >= min_span
        - page >= 1

    Example:
        >>> region = FigureRegion(ymin=100, xmin=200, ymax=400, xmax=800, page=2)
        >>> region.height
        300
    """

    ymin: int
    xmin: int
    ymax: int
    xmax: int
    page: int
    min_span: int = field(default=FIGURE_THRESHOLDS.min_region_span, compare=False)

    def __post_init__(self) -> None:
        """Validate region on construction."""
        scale = FIGURE_THRESHOLDS.normalized_scale
        for name in ("ymin", "xmin", "ymax", "xmax"):
            value = getattr(self, name)
            if not 0 <= value <= scale:
                raise ValueError(f"{name} must be within 0-{scale}: {value}")
        if self.ymax <= self.ymin:
            raise ValueError(f"ymax must be > ymin: {self.ymax} <= {self.ymin}")
        if self.xmax <= self.xmin:
            raise ValueError(f"xmax must be > xmin: {self.xmax} <= {self.xmin}")
        if self.height < self.min_span or self.width < self.min_span:
            raise ValueError(
                f"Region {self.width}x{self.height} below minimum span {self.min_span}"
            )
        if self.page < 1:
            raise ValueError(f"page must be >= 1: {self.page}")

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def height(self) -> int:
        """Height on the normalized grid."""
        return self.ymax - self.ymin

    @property
    def width(self) -> int:
        """Width on the normalized grid."""
        return self.xmax - self.xmin

    @property
    def page_index(self) -> int:
        """0-based page index for PDF access."""
        return self.page - 1

    # ─────────────────────────────────────────────────────────────────────────
    # Factory Methods
    # ─────────────────────────────────────────────────────────────────────────

    @classmethod
    def try_parse(
        cls,
        box: Optional[Sequence[Any]],
        page: Any,
        *,
        min_span: int = FIGURE_THRESHOLDS.min_region_span,
    ) -> Optional[FigureRegion]:
        """
        Build a region from raw model output, or None if it is unusable.

        Args:
            box: ``[ymin, xmin, ymax, xmax]`` as returned by the model
            page: Page number as returned by the model
            min_span: Minimum accepted span on the normalized grid

        Returns:
            FigureRegion, or None for missing, malformed or out-of-range
            input (logged at debug level; callers decide how to degrade).
        """
        if box is None or page is None:
            return None
        try:
            if len(box) != 4:
                raise ValueError(f"expected 4 coordinates, got {len(box)}")
            ymin, xmin, ymax, xmax = (int(round(float(v))) for v in box)
            return cls(
                ymin=ymin,
                xmin=xmin,
                ymax=ymax,
                xmax=xmax,
                page=int(page),
                min_span=min_span,
            )
        except (TypeError, ValueError) as e:
            logger.debug(f"Rejected figure region {box!r} on page {page!r}: {e}")
            return None

    def with_page(self, page: int) -> FigureRegion:
        """Copy of this region on another page (used for page translation)."""
        return replace(self, page=page)

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def as_list(self) -> list[int]:
        """Return ``[ymin, xmin, ymax, xmax]``."""
        return [self.ymin, self.xmin, self.ymax, self.xmax]

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON storage."""
        return {"box": self.as_list(), "page": self.page}

    @classmethod
    def from_dict(cls, data: dict) -> FigureRegion:
        """Deserialize from dictionary (stored regions are trusted)."""
        ymin, xmin, ymax, xmax = data["box"]
        return cls(ymin=ymin, xmin=xmin, ymax=ymax, xmax=xmax, page=data["page"], min_span=0)

    def __repr__(self) -> str:
        """Concise representation for debugging."""
        return f"FigureRegion(p{self.page}, {self.as_list()})"
