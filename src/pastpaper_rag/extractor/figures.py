"""
Module: extractor.figures

Purpose:
    Crops question figures out of source PDFs. A figure region on the
    model's 0-1000 grid is mapped onto the rasterized page, padded,
    clamped to the page and saved under a filename derived from the
    question's natural key, so re-running overwrites the same file.

Key Functions:
    - crop_figure(): Rasterize, crop and save one figure
    - figure_url(): URL-like reference stored on the question

Dependencies:
    - PIL: Cropping and PNG output
    - common.bbox_utils: Coordinate translation, padding and clamping
    - extractor.utils.pdf: Default rasterizer

Used By:
    - pipeline.orchestrator: Persistence stage
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pastpaper_rag.common.bbox_utils import box_size, normalized_to_pixels, pad_and_clamp
from pastpaper_rag.common.path_utils import figure_filename
from pastpaper_rag.common.thresholds import FIGURE_THRESHOLDS
from pastpaper_rag.core.capabilities import PageRasterizer
from pastpaper_rag.core.models import FigureRegion

from .config import FigureConfig
from .utils.pdf import DocumentSource, PyMuPDFRasterizer, open_document

logger = logging.getLogger(__name__)

DEFAULT_URL_PREFIX = "/questions"


def crop_figure(
    document: DocumentSource,
    page: int,
    region: FigureRegion,
    *,
    output_dir: Path,
    year: int,
    paper: str,
    question_number: str,
    config: Optional[FigureConfig] = None,
    rasterizer: Optional[PageRasterizer] = None,
) -> Optional[Path]:
    """
    Crop a figure region and save it as PNG.

    Args:
        document: Source PDF (open document, bytes, or path)
        page: Absolute 1-based page number
        region: Figure region on the 0-1000 grid
        output_dir: Directory for figure files (created if missing)
        year, paper, question_number: Natural key, used for the filename
        config: Scale and padding (defaults to FigureConfig())
        rasterizer: Page renderer (defaults to PyMuPDFRasterizer())

    Returns:
        Path of the written PNG, or None when the page does not exist or
        the padded box has no area (both logged as warnings).

    Raises:
        OSError: If the image cannot be written.

    Example:
        >>> crop_figure(doc, 3, region, output_dir=Path("public/questions"),
        ...             year=2021, paper="s21", question_number="2(a)")
        PosixPath('public/questions/2021_s21_2_a_.png')
    """
    config = config or FigureConfig()
    rasterizer = rasterizer or PyMuPDFRasterizer()
    label = f"{year} {paper} {question_number}"

    doc = open_document(document)
    owns_document = doc is not document
    try:
        page_index = page - 1
        if not 0 <= page_index < doc.page_count:
            logger.warning(f"{label}: figure page {page} outside document of {doc.page_count} pages")
            return None

        image = rasterizer.render_page(doc, page_index, config.scale)
    finally:
        if owns_document:
            doc.close()

    width, height = image.size
    box = normalized_to_pixels(
        region.ymin,
        region.xmin,
        region.ymax,
        region.xmax,
        width,
        height,
        scale=FIGURE_THRESHOLDS.normalized_scale,
    )
    box = pad_and_clamp(box, width, height, padding_ratio=config.padding_ratio)
    crop_width, crop_height = box_size(box)
    if crop_width <= 0 or crop_height <= 0:
        logger.warning(f"{label}: empty crop {box} on {width}x{height} page; skipping figure")
        return None

    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / figure_filename(year, paper, question_number)
    image.crop(box).save(path, format="PNG")
    logger.debug(f"{label}: saved {crop_width}x{crop_height} figure to {path}")
    return path


def figure_url(path: Path, url_prefix: str = DEFAULT_URL_PREFIX) -> str:
    """
    URL-like reference for a saved figure.

    Example:
        >>> figure_url(Path("public/questions/2021_s21_1_a_.png"))
        '/questions/2021_s21_1_a_.png'
    """
    return f"{url_prefix.rstrip('/')}/{path.name}"
