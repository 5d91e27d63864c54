"""Anonymization run orchestrator: one detection call per page, all-or-nothing commit."""

import asyncio
import logging
import threading
import time
from typing import List, Optional, Sequence

from .detectors.base import BaseDetector
from .errors import MalformedResponseError, RedactionError, RunAbortedError
from .models.entities import PageRaster, RawDetection, RedactionMark, RedactionSettings
from .models.state import Detecting, StateTracker
from .store import MarkStore

logger = logging.getLogger(__name__)

DONE_NOTE = "Done!"


class AnonymizationOrchestrator:
    """Runs the detector over every page and commits the marks atomically.

    Marks from a run are collected in a run-local list and only replace the
    store's contents once every page has been processed. Any fatal error (or
    an abort request) discards the list and leaves the store untouched, so a
    partial redaction set is never presented as complete.
    """

    def __init__(
        self,
        detector: BaseDetector,
        tracker: Optional[StateTracker] = None,
        concurrency: int = 1,
    ):
        self.detector = detector
        self.tracker = tracker or StateTracker()
        self.concurrency = max(1, int(concurrency))

    def run(
        self,
        pages: Sequence[PageRaster],
        settings: RedactionSettings,
        store: MarkStore,
        abort_event: Optional[threading.Event] = None,
    ) -> List[RedactionMark]:
        """Run detection sequentially over all pages (synchronous)."""
        if not pages:
            logger.info("No pages loaded, nothing to analyse")
            return store.all()

        ordered = sorted(pages, key=lambda p: p.page_number)
        snapshot = settings.copy()
        total = len(ordered)
        self.tracker.begin()
        start_time = time.time()

        logger.info("Detecting PII on %d pages...", total)
        accumulated: List[RedactionMark] = []
        try:
            for page in ordered:
                self._check_abort(abort_event)
                self.tracker.set(Detecting(page.page_number, total))
                detections = self._detect_page(page, snapshot)
                accumulated.extend(store.build_batch(page.page_number, detections))
        except Exception as e:
            self._fail(e)
            raise

        return self._commit(store, accumulated, start_time)

    async def run_async(
        self,
        pages: Sequence[PageRaster],
        settings: RedactionSettings,
        store: MarkStore,
        abort_event: Optional[threading.Event] = None,
    ) -> List[RedactionMark]:
        """Run detection with up to ``concurrency`` calls in flight.

        Results land in one slot per page and are merged in page order, so
        the committed marks are identical to a sequential run.
        """
        if not pages:
            logger.info("No pages loaded, nothing to analyse")
            return store.all()

        ordered = sorted(pages, key=lambda p: p.page_number)
        snapshot = settings.copy()
        total = len(ordered)
        self.tracker.begin()
        start_time = time.time()

        logger.info(
            "Detecting PII on %d pages (async, concurrency=%d)...",
            total,
            self.concurrency,
        )
        semaphore = asyncio.Semaphore(self.concurrency)
        slots: List[Optional[List[RawDetection]]] = [None] * total

        async def _worker(index: int, page: PageRaster) -> None:
            async with semaphore:
                self._check_abort(abort_event)
                self.tracker.set(Detecting(page.page_number, total))
                slots[index] = await self._detect_page_async(page, snapshot)

        tasks = [asyncio.ensure_future(_worker(i, p)) for i, p in enumerate(ordered)]
        try:
            await asyncio.gather(*tasks)
        except BaseException as e:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            if isinstance(e, Exception):
                self._fail(e)
            else:
                self.tracker.fail("Anonymization run was cancelled")
            raise

        accumulated: List[RedactionMark] = []
        for page, detections in zip(ordered, slots):
            accumulated.extend(store.build_batch(page.page_number, detections or []))
        return self._commit(store, accumulated, start_time)

    def _detect_page(self, page: PageRaster, settings: RedactionSettings) -> List[RawDetection]:
        """Run detection on a single page (sync)."""
        try:
            detections = self.detector.detect(
                page, settings.ordered_categories(), settings.custom_keywords
            )
        except MalformedResponseError as e:
            logger.warning(
                "Unreadable detector response for page %d, treating as empty: %s",
                page.page_number,
                e,
            )
            return []
        logger.info("Page %d: %d detections", page.page_number, len(detections))
        return detections

    async def _detect_page_async(
        self, page: PageRaster, settings: RedactionSettings
    ) -> List[RawDetection]:
        """Run detection on a single page (async)."""
        try:
            detections = await self.detector.detect_async(
                page, settings.ordered_categories(), settings.custom_keywords
            )
        except MalformedResponseError as e:
            logger.warning(
                "Unreadable detector response for page %d, treating as empty: %s",
                page.page_number,
                e,
            )
            return []
        logger.info("Page %d: %d detections", page.page_number, len(detections))
        return detections

    def _commit(
        self,
        store: MarkStore,
        marks: List[RedactionMark],
        start_time: float,
    ) -> List[RedactionMark]:
        store.replace_all(marks)
        self.tracker.complete(DONE_NOTE)
        logger.info(
            "Run complete: %d marks in %.2fs", len(marks), time.time() - start_time
        )
        return marks

    @staticmethod
    def _check_abort(abort_event: Optional[threading.Event]) -> None:
        if abort_event is not None and abort_event.is_set():
            raise RunAbortedError("Anonymization run was aborted")

    def _fail(self, error: Exception) -> None:
        if isinstance(error, RedactionError):
            message = str(error)
            logger.warning("Run aborted, discarding partial results: %s", message)
        else:
            message = f"Anonymization failed: {error}"
            logger.exception("Run failed, discarding partial results")
        self.tracker.fail(message)
