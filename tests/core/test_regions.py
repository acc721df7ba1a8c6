"""
Unit Tests for FigureRegion Model

Tests validation of figure bounding boxes on the 0-1000 grid.
"""

import pytest

from pastpaper_rag.core.models import FigureRegion


class TestFigureRegion:
    """Tests for FigureRegion dataclass."""

    # ─────────────────────────────────────────────────────────────────────────
    # Constructor Tests
    # ─────────────────────────────────────────────────────────────────────────

    def test_init_when_valid_region_then_creates_region(self):
        region = FigureRegion(ymin=100, xmin=200, ymax=400, xmax=800, page=2)
        assert region.height == 300
        assert region.width == 600
        assert region.page_index == 1

    def test_init_when_ymax_not_greater_than_ymin_then_raises_error(self):
        with pytest.raises(ValueError, match="ymax must be > ymin"):
            FigureRegion(ymin=400, xmin=0, ymax=400, xmax=500, page=1)

    def test_init_when_xmax_less_than_xmin_then_raises_error(self):
        with pytest.raises(ValueError, match="xmax must be > xmin"):
            FigureRegion(ymin=0, xmin=500, ymax=400, xmax=100, page=1)

    def test_init_when_span_below_minimum_then_raises_error(self):
        """A 10-unit tall strip is header or barcode noise."""
        with pytest.raises(ValueError, match="below minimum span"):
            FigureRegion(ymin=0, xmin=0, ymax=10, xmax=500, page=1)

    def test_init_when_coordinate_outside_grid_then_raises_error(self):
        with pytest.raises(ValueError, match="within 0-1000"):
            FigureRegion(ymin=0, xmin=0, ymax=1200, xmax=500, page=1)

    def test_init_when_page_zero_then_raises_error(self):
        with pytest.raises(ValueError, match="page must be >= 1"):
            FigureRegion(ymin=0, xmin=0, ymax=100, xmax=100, page=0)

    # ─────────────────────────────────────────────────────────────────────────
    # Factory Tests
    # ─────────────────────────────────────────────────────────────────────────

    def test_try_parse_when_floats_then_rounds(self):
        region = FigureRegion.try_parse([100.4, 200.6, 400.0, 800.0], 3)
        assert region is not None
        assert region.as_list() == [100, 201, 400, 800]
        assert region.page == 3

    @pytest.mark.parametrize(
        "box, page",
        [
            (None, 1),
            ([100, 200, 400], 1),
            ([400, 200, 100, 800], 1),
            ([100, 200, 105, 800], 1),
            (["a", 200, 400, 800], 1),
            ([100, 200, 400, 800], None),
        ],
    )
    def test_try_parse_when_unusable_then_returns_none(self, box, page):
        assert FigureRegion.try_parse(box, page) is None

    def test_try_parse_when_custom_min_span_then_applies_it(self):
        assert FigureRegion.try_parse([100, 100, 105, 105], 1, min_span=5) is not None
        assert FigureRegion.try_parse([100, 100, 105, 105], 1, min_span=6) is None

    def test_to_dict_from_dict_preserves_region(self):
        region = FigureRegion(ymin=100, xmin=200, ymax=400, xmax=800, page=2)
        restored = FigureRegion.from_dict(region.to_dict())
        assert restored.as_list() == region.as_list()
        assert restored.page == 2
