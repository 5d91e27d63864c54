"""Data models for the redaction pipeline."""

from .entities import (
    PiiCategory,
    NormalizedBox,
    PageRaster,
    RawDetection,
    RedactionMark,
    RedactionSettings,
    ExportResult,
    DEFAULT_CATEGORY_DEFINITIONS,
    DEFAULT_ENABLED_CATEGORIES,
)
from .state import (
    SessionState,
    Idle,
    Loading,
    Detecting,
    Exporting,
    Failed,
    StateTracker,
)

__all__ = [
    "PiiCategory",
    "NormalizedBox",
    "PageRaster",
    "RawDetection",
    "RedactionMark",
    "RedactionSettings",
    "ExportResult",
    "DEFAULT_CATEGORY_DEFINITIONS",
    "DEFAULT_ENABLED_CATEGORIES",
    "SessionState",
    "Idle",
    "Loading",
    "Detecting",
    "Exporting",
    "Failed",
    "StateTracker",
]
