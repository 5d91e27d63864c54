"""Ordered, uniquely identified collection of redaction marks."""

import itertools
import logging
import threading
from typing import Iterable, Iterator, List, Optional

from .models.entities import PiiCategory, RawDetection, RedactionMark

logger = logging.getLogger(__name__)


class MarkStore:
    """Redaction marks for one loaded document, in insertion order.

    Ids look like ``mark-{page}-{index}-{seq}`` where ``seq`` comes from a
    store-wide counter that only moves forward, so an id is never handed out
    twice, even for batches that were built and then thrown away.
    """

    def __init__(self):
        self._marks: List[RedactionMark] = []
        self._sequence = itertools.count(1)
        self._seq_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._marks)

    def __iter__(self) -> Iterator[RedactionMark]:
        return iter(list(self._marks))

    def all(self) -> List[RedactionMark]:
        return list(self._marks)

    def get(self, mark_id: str) -> Optional[RedactionMark]:
        for mark in self._marks:
            if mark.id == mark_id:
                return mark
        return None

    def build_batch(
        self, page_number: int, detections: Iterable[RawDetection]
    ) -> List[RedactionMark]:
        """Create marks for one page's detections without storing them."""
        marks = []
        for index, det in enumerate(detections):
            with self._seq_lock:
                seq = next(self._sequence)
            marks.append(
                RedactionMark(
                    id=f"mark-{page_number}-{index}-{seq}",
                    category=det.category,
                    source_text=det.text,
                    page_number=page_number,
                    box=det.box,
                )
            )
        return marks

    def add_batch(
        self, page_number: int, detections: Iterable[RawDetection]
    ) -> List[RedactionMark]:
        marks = self.build_batch(page_number, detections)
        self._marks = self._marks + marks
        return marks

    def replace_all(self, marks: Iterable[RedactionMark]) -> None:
        """Swap the whole collection in one assignment."""
        self._marks = list(marks)
        logger.debug("Mark store replaced: %d marks", len(self._marks))

    def remove(self, mark_id: str) -> bool:
        """Remove one mark. Removing an unknown id is a no-op."""
        remaining = [m for m in self._marks if m.id != mark_id]
        removed = len(remaining) != len(self._marks)
        self._marks = remaining
        return removed

    def remove_all(self) -> int:
        count = len(self._marks)
        self._marks = []
        return count

    def filter_by_page(self, page_number: int) -> List[RedactionMark]:
        return [m for m in self._marks if m.page_number == page_number]

    def filter_by_categories(self, categories: Iterable[PiiCategory]) -> List[RedactionMark]:
        wanted = set(categories)
        return [m for m in self._marks if m.category in wanted]
