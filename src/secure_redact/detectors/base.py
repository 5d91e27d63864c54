"""Abstract base class for PII detectors."""

import asyncio
from abc import ABC, abstractmethod
from typing import Iterable, List, Sequence

from ..models.entities import PageRaster, PiiCategory, RawDetection


class BaseDetector(ABC):
    """Interface for page-image PII detectors.

    One call covers exactly one page; implementations never batch pages.
    """

    @abstractmethod
    def detect(
        self,
        page: PageRaster,
        categories: Iterable[PiiCategory],
        keywords: Sequence[str] = (),
    ) -> List[RawDetection]:
        """
        Detect PII on a single rendered page (synchronous).

        Args:
            page: The page raster to analyse.
            categories: Enabled PII categories.
            keywords: Free-text keywords to look for in addition.

        Returns:
            Decoded detections in the order the backend reported them.

        Raises:
            DetectionConfigError: No usable credential or configuration.
            DetectionRateLimitError: The backend throttled the call.
            DetectionServiceError: Transport or server failure.
            MalformedResponseError: The response could not be decoded.
        """

    async def detect_async(
        self,
        page: PageRaster,
        categories: Iterable[PiiCategory],
        keywords: Sequence[str] = (),
    ) -> List[RawDetection]:
        """
        Detect PII on a single page (asynchronous).

        Default implementation runs ``detect`` in a thread-pool executor so
        the event loop is never blocked.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, self.detect, page, list(categories), list(keywords)
        )
