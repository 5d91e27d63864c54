"""Image-only PDF output using PyMuPDF and Pillow."""

import io
import logging
from typing import Iterable, List

import fitz  # PyMuPDF
from PIL import Image, ImageDraw

from .base import BaseDocumentWriter, PageStamps
from ..geometry import OutputGeometry

logger = logging.getLogger(__name__)

BLACK = (0, 0, 0)


def burn_stamps(
    image_data: bytes,
    stamps: Iterable[OutputGeometry],
    jpeg_quality: int = 90,
) -> bytes:
    """Paint opaque black rectangles into the raster itself.

    Each rectangle is widened to whole pixels so no partially covered pixel
    keeps original content. The image keeps its encoding (PNG or JPEG); JPEG is re-encoded at
    ``jpeg_quality``.
    """
    with Image.open(io.BytesIO(image_data)) as img:
        source_format = img.format
        canvas = img.convert("RGB")

    draw = ImageDraw.Draw(canvas)
    for stamp in stamps:
        if stamp.is_empty:
            continue
        x0, y0, x1, y1 = stamp.pixel_cover()
        # Pillow rectangles include their far edge
        draw.rectangle([x0, y0, x1 - 1, y1 - 1], fill=BLACK)

    buf = io.BytesIO()
    if source_format == "JPEG":
        canvas.save(buf, format="JPEG", quality=jpeg_quality)
    else:
        canvas.save(buf, format="PNG")
    return buf.getvalue()


class PDFImageWriter(BaseDocumentWriter):
    """Write each page as a full-page image with opaque fill rectangles on top.

    With ``burn_in`` (the default) the rectangles are also painted into the
    embedded image, so extracting the image from the PDF reveals nothing.
    """

    def __init__(self, burn_in: bool = True, jpeg_quality: int = 90):
        self.burn_in = burn_in
        self.jpeg_quality = jpeg_quality

    def write(self, pages: List[PageStamps]) -> bytes:
        doc = fitz.open()
        try:
            for entry in pages:
                self._write_page(doc, entry)
            return doc.tobytes(garbage=4, deflate=True)
        finally:
            doc.close()

    def _write_page(self, doc, entry: PageStamps) -> None:
        raster = entry.page
        stamps = [s for s in entry.stamps if not s.is_empty]

        # Page size in points equals the raster size in pixels, so orientation
        # follows width vs height and stamp coordinates need no rescaling.
        page = doc.new_page(width=raster.pixel_width, height=raster.pixel_height)

        image_data = raster.image_data
        if self.burn_in and stamps:
            image_data = burn_stamps(image_data, stamps, self.jpeg_quality)
        page.insert_image(page.rect, stream=image_data)

        for stamp in stamps:
            page.draw_rect(
                fitz.Rect(stamp.x, stamp.y, stamp.x1, stamp.y1),
                color=None,
                fill=BLACK,
                width=0,
                overlay=True,
            )

        logger.debug(
            "Page %d written with %d stamps", raster.page_number, len(stamps)
        )
