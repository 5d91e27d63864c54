"""Rebuilds the output document from page rasters and redaction marks."""

import logging
from pathlib import PurePath
from typing import Iterable, List, Optional, Sequence

from .errors import ExportError
from .geometry import output_geometry
from .models.entities import ExportResult, PageRaster, RedactionMark
from .writers.base import BaseDocumentWriter, PageStamps
from .writers.pdf_writer import PDFImageWriter

logger = logging.getLogger(__name__)

OUTPUT_SUFFIX = "_redacted"
DEFAULT_OUTPUT_NAME = f"document{OUTPUT_SUFFIX}.pdf"


def output_filename(source_filename: Optional[str]) -> str:
    """``report.pdf`` becomes ``report_redacted.pdf``."""
    if not source_filename:
        return DEFAULT_OUTPUT_NAME
    stem = PurePath(source_filename).stem
    if not stem:
        return DEFAULT_OUTPUT_NAME
    return f"{stem}{OUTPUT_SUFFIX}.pdf"


class DocumentReconstructor:
    """Stamp opaque rectangles over page rasters and serialize the result."""

    def __init__(self, writer: Optional[BaseDocumentWriter] = None):
        self.writer = writer or PDFImageWriter()

    def plan(
        self,
        pages: Sequence[PageRaster],
        marks: Iterable[RedactionMark],
    ) -> List[PageStamps]:
        """Compute the stamps for every page, pages ascending, marks in store order."""
        ordered = sorted(pages, key=lambda p: p.page_number)
        numbers = [p.page_number for p in ordered]
        if not ordered:
            raise ExportError("No pages to export")
        if numbers != list(range(1, len(ordered) + 1)):
            raise ExportError(f"Page sequence has gaps or duplicates: {numbers}")

        plans = {p.page_number: PageStamps(page=p) for p in ordered}
        for mark in marks:
            entry = plans.get(mark.page_number)
            if entry is None:
                logger.warning(
                    "Mark %s refers to missing page %d, skipping",
                    mark.id,
                    mark.page_number,
                )
                continue
            geometry = output_geometry(
                mark.box, entry.page.pixel_width, entry.page.pixel_height
            )
            if geometry.is_empty:
                logger.debug("Mark %s has zero area, not stamped", mark.id)
                continue
            entry.stamps.append(geometry)

        return [plans[n] for n in numbers]

    def reconstruct(
        self,
        pages: Sequence[PageRaster],
        marks: Iterable[RedactionMark],
        source_filename: Optional[str] = None,
    ) -> ExportResult:
        plans = self.plan(pages, marks)
        stamp_count = sum(len(p.stamps) for p in plans)
        try:
            data = self.writer.write(plans)
        except ExportError:
            raise
        except Exception as e:
            raise ExportError(f"Failed to generate PDF: {e}") from e

        logger.info(
            "Exported %d pages with %d stamps (%d bytes)",
            len(plans),
            stamp_count,
            len(data),
        )
        return ExportResult(
            filename=output_filename(source_filename),
            data=data,
            page_count=len(plans),
            stamp_count=stamp_count,
        )
