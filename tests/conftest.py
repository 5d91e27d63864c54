"""Shared pytest fixtures and helpers.

Everything runs in-process: PDFs are generated with PyMuPDF, page rasters
with Pillow, and the detector is a scripted fake, so no test touches the
network.
"""

import io
from typing import Dict, List, Sequence, Union

import fitz  # PyMuPDF
import pytest
from PIL import Image

from secure_redact.detectors.base import BaseDetector
from secure_redact.models.entities import (
    NormalizedBox,
    PageRaster,
    PiiCategory,
    RawDetection,
)

PageScript = Union[List[RawDetection], Exception]


def make_pdf_bytes(*sizes, text: str = "Jan Kowalski, jan@example.com") -> bytes:
    """Build a PDF with one page per ``(width, height)`` in points."""
    doc = fitz.open()
    for width, height in sizes or [(200, 300)]:
        page = doc.new_page(width=width, height=height)
        page.insert_text((20, 40), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


def make_png(width: int, height: int, color=(255, 255, 255)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


def make_page(page_number: int, width: int = 100, height: int = 150) -> PageRaster:
    return PageRaster(
        page_number=page_number,
        image_data=make_png(width, height),
        pixel_width=width,
        pixel_height=height,
    )


def detection(
    text: str = "Jan",
    category: PiiCategory = PiiCategory.NAME,
    box=(0, 0, 100, 100),
) -> RawDetection:
    return RawDetection(text=text, category=category, box=NormalizedBox(*box))


class FakeDetector(BaseDetector):
    """Returns scripted detections per page number, or raises a scripted error."""

    def __init__(self, script: Dict[int, PageScript] = None, default: Sequence = ()):
        self.script = script or {}
        self.default = list(default)
        self.calls: List[int] = []
        self.requests: List[tuple] = []

    def detect(self, page, categories, keywords=()):
        self.calls.append(page.page_number)
        self.requests.append((list(categories), list(keywords)))
        outcome = self.script.get(page.page_number, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)


@pytest.fixture
def pages() -> List[PageRaster]:
    return [make_page(n) for n in (1, 2, 3)]


@pytest.fixture
def two_page_pdf() -> bytes:
    return make_pdf_bytes((200, 300), (300, 200))
