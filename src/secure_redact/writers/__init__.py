"""Output document writers."""

from .base import BaseDocumentWriter, PageStamps
from .pdf_writer import PDFImageWriter, burn_stamps

__all__ = ["BaseDocumentWriter", "PageStamps", "PDFImageWriter", "burn_stamps"]
