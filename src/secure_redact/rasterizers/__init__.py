"""Document rasterization module."""

from .base import BaseRasterizer
from .pdf_rasterizer import PDFRasterizer

__all__ = ["BaseRasterizer", "PDFRasterizer"]
