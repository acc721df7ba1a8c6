"""Bounding box conversion utilities.

Provides the coordinate-space translations used by figure cropping:
model bounding boxes on a normalized 0-1000 grid become pixel boxes on a
rasterized page, then get padded and clamped to the page bounds.

Pixel boxes are ``(left, top, right, bottom)`` tuples, the order PIL's
``Image.crop`` expects, with right/bottom exclusive.
"""

from __future__ import annotations

from typing import Tuple

PixelBox = Tuple[int, int, int, int]


def normalized_to_pixels(
    ymin: float,
    xmin: float,
    ymax: float,
    xmax: float,
    width: int,
    height: int,
    *,
    scale: int = 1000,
) -> PixelBox:
    """Convert a normalized ``[ymin, xmin, ymax, xmax]`` box to pixels.

    Args:
        ymin, xmin, ymax, xmax: Box edges on the ``0..scale`` grid.
        width: Pixel width of the rendered page.
        height: Pixel height of the rendered page.
        scale: Size of the normalized grid (1000 for Gemini boxes).

    Returns:
        ``(left, top, right, bottom)`` in pixels. No clamping is applied.

    Example:
        >>> normalized_to_pixels(100, 200, 400, 800, width=1190, height=1684)
        (238, 168, 952, 674)
    """
    left = int(round(xmin / scale * width))
    top = int(round(ymin / scale * height))
    right = int(round(xmax / scale * width))
    bottom = int(round(ymax / scale * height))
    return (left, top, right, bottom)


def pad_and_clamp(
    box: PixelBox,
    width: int,
    height: int,
    *,
    padding_ratio: float = 0.02,
) -> PixelBox:
    """Expand a pixel box by a fraction of its span, then clamp to the page.

    Padding is computed per axis from the box's own width and height so
    small figures get small margins.

    Args:
        box: ``(left, top, right, bottom)`` pixel box.
        width: Page width in pixels (clamp bound for left/right).
        height: Page height in pixels (clamp bound for top/bottom).
        padding_ratio: Fraction of the span added on each side.

    Returns:
        Padded and clamped ``(left, top, right, bottom)``. The result may be
        empty (right <= left or bottom <= top) when the input lies outside
        the page; callers must check.

    Example:
        >>> pad_and_clamp((100, 100, 200, 300), 1000, 1000, padding_ratio=0.1)
        (90, 80, 210, 320)
        >>> pad_and_clamp((0, 950, 100, 1000), 1000, 1000, padding_ratio=0.1)
        (0, 945, 110, 1000)
    """
    left, top, right, bottom = box
    pad_x = int(round(max(right - left, 0) * padding_ratio))
    pad_y = int(round(max(bottom - top, 0) * padding_ratio))

    return (
        max(0, left - pad_x),
        max(0, top - pad_y),
        min(width, right + pad_x),
        min(height, bottom + pad_y),
    )


def box_size(box: PixelBox) -> Tuple[int, int]:
    """Return ``(width, height)`` of a pixel box (may be non-positive)."""
    left, top, right, bottom = box
    return (right - left, bottom - top)
