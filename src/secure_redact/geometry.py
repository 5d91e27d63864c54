"""Conversion of normalized detector boxes into overlay and output geometry.

Detector boxes use fractions of page height/width scaled by 1000. Two
projections are derived from them:

* overlay geometry, in percent of the preview container, and
* output geometry, in absolute pixels of the page raster.

Every coordinate is clamped to ``[0, 1000]`` before conversion and inverted
extents collapse to zero, so no projection ever has negative area.
"""

import math
from dataclasses import dataclass
from typing import Tuple

from .models.entities import NormalizedBox

NORMALIZED_MAX = 1000.0


@dataclass(frozen=True)
class OverlayGeometry:
    """Percent-of-container placement for an interactive preview."""

    top: float
    left: float
    height: float
    width: float

    def to_dict(self) -> dict:
        return {
            "top": self.top,
            "left": self.left,
            "height": self.height,
            "width": self.width,
        }


@dataclass(frozen=True)
class OutputGeometry:
    """Pixel rectangle on a page raster, origin at the top-left corner."""

    x: float
    y: float
    w: float
    h: float

    @property
    def x1(self) -> float:
        return self.x + self.w

    @property
    def y1(self) -> float:
        return self.y + self.h

    @property
    def is_empty(self) -> bool:
        return self.w <= 0 or self.h <= 0

    def pixel_cover(self) -> Tuple[int, int, int, int]:
        """Smallest integer ``(x0, y0, x1, y1)`` box containing the rectangle."""
        return (
            int(math.floor(self.x)),
            int(math.floor(self.y)),
            int(math.ceil(self.x1)),
            int(math.ceil(self.y1)),
        )


def clamp_coordinate(value: float) -> float:
    """Clamp a normalized coordinate into ``[0, 1000]``; NaN becomes 0."""
    value = float(value)
    if math.isnan(value):
        return 0.0
    return min(max(value, 0.0), NORMALIZED_MAX)


def _clamped(box: NormalizedBox) -> Tuple[float, float, float, float]:
    ymin = clamp_coordinate(box.ymin)
    xmin = clamp_coordinate(box.xmin)
    ymax = clamp_coordinate(box.ymax)
    xmax = clamp_coordinate(box.xmax)
    return ymin, xmin, max(ymax - ymin, 0.0), max(xmax - xmin, 0.0)


def overlay_geometry(box: NormalizedBox) -> OverlayGeometry:
    ymin, xmin, height, width = _clamped(box)
    return OverlayGeometry(
        top=ymin / 10.0,
        left=xmin / 10.0,
        height=height / 10.0,
        width=width / 10.0,
    )


def output_geometry(box: NormalizedBox, pixel_width: int, pixel_height: int) -> OutputGeometry:
    """Project *box* onto a raster of ``pixel_width`` x ``pixel_height``."""
    if pixel_width <= 0 or pixel_height <= 0:
        raise ValueError(f"Invalid page size {pixel_width}x{pixel_height}")
    ymin, xmin, height, width = _clamped(box)
    return OutputGeometry(
        x=xmin / NORMALIZED_MAX * pixel_width,
        y=ymin / NORMALIZED_MAX * pixel_height,
        w=width / NORMALIZED_MAX * pixel_width,
        h=height / NORMALIZED_MAX * pixel_height,
    )
