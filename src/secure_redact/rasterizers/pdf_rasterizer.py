"""PDF page rasterization using PyMuPDF."""

import logging
from typing import List, Optional

import filetype
import fitz  # PyMuPDF

from .base import BaseRasterizer, ProgressCallback
from ..errors import DocumentLoadError
from ..models.entities import PageRaster

logger = logging.getLogger(__name__)

# 1.5x keeps small print legible for the detector without bloating output size
DEFAULT_SCALE = 1.5

_FORMATS = {
    "png": "image/png",
    "jpeg": "image/jpeg",
}


class PDFRasterizer(BaseRasterizer):
    """Render PDF pages to PNG or JPEG images at a fixed scale.

    Each page gets its own pixmap, so pages never share a drawing surface.
    """

    def __init__(
        self,
        scale: float = DEFAULT_SCALE,
        image_format: str = "png",
        jpeg_quality: int = 90,
    ):
        """
        Initialize the rasterizer.

        Args:
            scale: Zoom factor applied to the native page size.
            image_format: ``"png"`` or ``"jpeg"``.
            jpeg_quality: Quality used when ``image_format`` is ``"jpeg"``.
        """
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")
        image_format = image_format.lower()
        if image_format == "jpg":
            image_format = "jpeg"
        if image_format not in _FORMATS:
            raise ValueError(f"Unsupported image format: {image_format}")
        self.scale = scale
        self.image_format = image_format
        self.jpeg_quality = jpeg_quality

    @property
    def mime_type(self) -> str:
        return _FORMATS[self.image_format]

    def rasterize(
        self,
        data: bytes,
        progress: Optional[ProgressCallback] = None,
    ) -> List[PageRaster]:
        self._verify_pdf_content(data)

        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise DocumentLoadError(f"Could not open PDF: {e}") from e

        try:
            if doc.needs_pass:
                raise DocumentLoadError("PDF is password protected")
            total = doc.page_count
            if total == 0:
                raise DocumentLoadError("PDF has no pages")

            matrix = fitz.Matrix(self.scale, self.scale)
            pages = []
            for index in range(total):
                page_number = index + 1
                if progress:
                    progress(page_number, total)
                pages.append(self._render_page(doc[index], page_number, matrix))
        except DocumentLoadError:
            raise
        except Exception as e:
            raise DocumentLoadError(f"Failed to render PDF: {e}") from e
        finally:
            doc.close()

        logger.info("Rasterized %d pages at %.2fx", len(pages), self.scale)
        return pages

    def _render_page(self, page, page_number: int, matrix) -> PageRaster:
        pix = page.get_pixmap(matrix=matrix, alpha=False)
        if self.image_format == "jpeg":
            image_data = pix.tobytes("jpeg", jpg_quality=self.jpeg_quality)
        else:
            image_data = pix.tobytes("png")
        logger.debug("Page %d: %dx%d px", page_number, pix.width, pix.height)
        return PageRaster(
            page_number=page_number,
            image_data=image_data,
            pixel_width=pix.width,
            pixel_height=pix.height,
            mime_type=self.mime_type,
        )

    @staticmethod
    def _verify_pdf_content(data: bytes) -> None:
        """Verify that *data* is a PDF using MIME type detection."""
        if not data:
            raise DocumentLoadError("Document is empty")
        kind = filetype.guess(data)
        if kind is None:
            raise DocumentLoadError("File type could not be determined")
        if kind.mime != "application/pdf":
            raise DocumentLoadError(f"File is not a valid PDF (detected: {kind.mime})")
