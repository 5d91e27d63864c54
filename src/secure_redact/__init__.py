"""Raster PII redaction: rasterize, detect, mark, reconstruct."""

from .factory import build_session
from .session import RedactionSession
from .orchestrator import AnonymizationOrchestrator
from .reconstructor import DocumentReconstructor, output_filename
from .store import MarkStore
from .geometry import OutputGeometry, OverlayGeometry, output_geometry, overlay_geometry
from .models.entities import (
    PiiCategory,
    NormalizedBox,
    PageRaster,
    RawDetection,
    RedactionMark,
    RedactionSettings,
    ExportResult,
)

__all__ = [
    "build_session",
    "RedactionSession",
    "AnonymizationOrchestrator",
    "DocumentReconstructor",
    "output_filename",
    "MarkStore",
    "OutputGeometry",
    "OverlayGeometry",
    "output_geometry",
    "overlay_geometry",
    "PiiCategory",
    "NormalizedBox",
    "PageRaster",
    "RawDetection",
    "RedactionMark",
    "RedactionSettings",
    "ExportResult",
]
