"""A single redaction session: one loaded document, its marks and settings."""

import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Iterable, List, Optional

from .errors import SessionBusyError
from .models.entities import (
    ExportResult,
    PageRaster,
    PiiCategory,
    RedactionMark,
    RedactionSettings,
)
from .models.state import Exporting, Loading, SessionState
from .orchestrator import AnonymizationOrchestrator
from .rasterizers.base import BaseRasterizer
from .reconstructor import DocumentReconstructor
from .store import MarkStore

logger = logging.getLogger(__name__)


class RedactionSession:
    """Owns the loaded pages, the mark store, the settings and the state.

    Loading a new document replaces pages and marks together and starts a
    fresh mark id sequence. Load, run and export are mutually exclusive;
    calling one while another is in progress raises SessionBusyError.
    """

    def __init__(
        self,
        rasterizer: BaseRasterizer,
        orchestrator: AnonymizationOrchestrator,
        reconstructor: DocumentReconstructor,
        settings: Optional[RedactionSettings] = None,
    ):
        self.session_id = uuid.uuid4().hex[:12]
        self.rasterizer = rasterizer
        self.orchestrator = orchestrator
        self.reconstructor = reconstructor
        self.settings = settings or RedactionSettings()
        self.tracker = orchestrator.tracker
        self.pages: List[PageRaster] = []
        self.store = MarkStore()
        self.source_filename: Optional[str] = None
        self._lock = threading.Lock()
        self._abort = threading.Event()

    @property
    def state(self) -> SessionState:
        return self.tracker.state

    @property
    def status_text(self) -> str:
        return self.tracker.status_text

    @property
    def error(self) -> Optional[str]:
        return self.tracker.error

    @contextmanager
    def _operation(self, name: str):
        if not self._lock.acquire(blocking=False):
            raise SessionBusyError(f"Cannot {name}: another operation is in progress")
        try:
            yield
        finally:
            self._lock.release()

    def load(self, data: bytes, filename: Optional[str] = None) -> List[PageRaster]:
        """Rasterize a new document, discarding the previous pages and marks."""
        with self._operation("load document"):
            self.tracker.begin()
            self.pages = []
            self.store = MarkStore()
            self.source_filename = None
            try:
                pages = self.rasterizer.rasterize(
                    data,
                    progress=lambda page, total: self.tracker.set(Loading(page, total)),
                )
            except Exception as e:
                logger.warning("Document load failed: %s", e)
                self.tracker.fail(f"Failed to load document: {e}")
                raise

            self.pages = pages
            self.source_filename = filename
            self.tracker.complete()
            logger.info("Loaded %s (%d pages)", filename or "document", len(pages))
            return pages

    def run(self) -> List[RedactionMark]:
        """Run detection over every page. Marks are replaced only on full success."""
        with self._operation("start anonymization"):
            self._abort.clear()
            return self.orchestrator.run(self.pages, self.settings, self.store, self._abort)

    async def run_async(self) -> List[RedactionMark]:
        with self._operation("start anonymization"):
            self._abort.clear()
            return await self.orchestrator.run_async(
                self.pages, self.settings, self.store, self._abort
            )

    def abort(self) -> None:
        """Ask a running detection pass to stop before its next page."""
        self._abort.set()

    def page(self, page_number: int) -> Optional[PageRaster]:
        for page in self.pages:
            if page.page_number == page_number:
                return page
        return None

    def marks(
        self,
        page_number: Optional[int] = None,
        categories: Optional[Iterable[PiiCategory]] = None,
    ) -> List[RedactionMark]:
        if categories is None:
            if page_number is None:
                return self.store.all()
            return self.store.filter_by_page(page_number)
        marks = self.store.filter_by_categories(categories)
        if page_number is not None:
            marks = [m for m in marks if m.page_number == page_number]
        return marks

    def remove_mark(self, mark_id: str) -> bool:
        removed = self.store.remove(mark_id)
        self.tracker.clear_error()
        return removed

    def clear_marks(self) -> int:
        count = self.store.remove_all()
        self.tracker.clear_error()
        return count

    def export(self) -> ExportResult:
        """Build the redacted PDF. Marks and pages are left untouched."""
        with self._operation("export"):
            self.tracker.begin()
            self.tracker.set(Exporting())
            try:
                result = self.reconstructor.reconstruct(
                    self.pages, self.store.all(), self.source_filename
                )
            except Exception as e:
                logger.warning("Export failed: %s", e)
                self.tracker.fail(f"Export failed: {e}")
                raise
            self.tracker.complete("Downloaded!")
            return result
