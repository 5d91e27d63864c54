"""Unit tests for normalized-box conversion."""

import math

import pytest

from secure_redact.geometry import (
    OutputGeometry,
    clamp_coordinate,
    output_geometry,
    overlay_geometry,
)
from secure_redact.models.entities import NormalizedBox


class TestOverlayGeometry:
    def test_full_page_box(self):
        overlay = overlay_geometry(NormalizedBox(0, 0, 1000, 1000))
        assert overlay.to_dict() == {"top": 0, "left": 0, "height": 100, "width": 100}

    def test_partial_box(self):
        overlay = overlay_geometry(NormalizedBox(100, 200, 300, 400))
        assert overlay.top == pytest.approx(10)
        assert overlay.left == pytest.approx(20)
        assert overlay.height == pytest.approx(20)
        assert overlay.width == pytest.approx(20)

    def test_inverted_box_has_zero_extent(self):
        overlay = overlay_geometry(NormalizedBox(500, 500, 400, 300))
        assert overlay.height == 0
        assert overlay.width == 0


class TestOutputGeometry:
    def test_landscape_page(self):
        # 800x600 raster, box [ymin=100, xmin=200, ymax=300, xmax=400]
        rect = output_geometry(NormalizedBox(100, 200, 300, 400), 800, 600)
        assert rect.x == pytest.approx(160)
        assert rect.y == pytest.approx(60)
        assert rect.w == pytest.approx(160)
        assert rect.h == pytest.approx(120)

    def test_full_page_box_covers_raster(self):
        rect = output_geometry(NormalizedBox(0, 0, 1000, 1000), 1275, 1650)
        assert (rect.x, rect.y, rect.w, rect.h) == (0, 0, 1275, 1650)

    @pytest.mark.parametrize(
        "box",
        [
            (0, 0, 1000, 1000),
            (10, 990, 20, 1000),
            (999, 999, 1000, 1000),
            (250, 125, 750, 875),
        ],
    )
    @pytest.mark.parametrize("size", [(100, 150), (1275, 1650), (1650, 1275)])
    def test_valid_boxes_stay_inside_page(self, box, size):
        width, height = size
        rect = output_geometry(NormalizedBox(*box), width, height)
        assert rect.x >= 0 and rect.y >= 0
        assert rect.w >= 0 and rect.h >= 0
        assert rect.x1 <= width + 1e-9
        assert rect.y1 <= height + 1e-9

    def test_out_of_range_coordinates_are_clamped(self):
        rect = output_geometry(NormalizedBox(-50, -50, 1200, 1500), 200, 100)
        assert (rect.x, rect.y, rect.w, rect.h) == (0, 0, 200, 100)

    def test_inverted_box_has_zero_area(self):
        rect = output_geometry(NormalizedBox(300, 400, 100, 200), 800, 600)
        assert rect.w == 0
        assert rect.h == 0
        assert rect.is_empty

    @pytest.mark.parametrize("size", [(0, 100), (100, 0), (-1, 100)])
    def test_invalid_page_size_raises(self, size):
        with pytest.raises(ValueError):
            output_geometry(NormalizedBox(0, 0, 10, 10), *size)


class TestClampCoordinate:
    @pytest.mark.parametrize(
        "value, expected",
        [(-5, 0), (0, 0), (512.5, 512.5), (1000, 1000), (4000, 1000)],
    )
    def test_clamps_into_range(self, value, expected):
        assert clamp_coordinate(value) == expected

    def test_nan_becomes_zero(self):
        assert clamp_coordinate(math.nan) == 0


class TestPixelCover:
    def test_fractional_edges_widen_outwards(self):
        rect = OutputGeometry(x=10.4, y=20.6, w=5.2, h=3.1)
        assert rect.pixel_cover() == (10, 20, 16, 24)

    def test_whole_pixels_unchanged(self):
        assert OutputGeometry(x=1, y=2, w=3, h=4).pixel_cover() == (1, 2, 4, 6)
