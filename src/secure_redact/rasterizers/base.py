"""Abstract base class for document rasterizers."""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from ..models.entities import PageRaster

ProgressCallback = Callable[[int, int], None]


class BaseRasterizer(ABC):
    """Interface for page rasterizers."""

    @abstractmethod
    def rasterize(
        self,
        data: bytes,
        progress: Optional[ProgressCallback] = None,
    ) -> List[PageRaster]:
        """
        Render every page of a document to an image.

        Args:
            data: Source document bytes.
            progress: Called with ``(page_number, total)`` before each page
                is rendered.

        Returns:
            One PageRaster per page, in document order.

        Raises:
            DocumentLoadError: If the document cannot be read. No partial
                page list is returned.
        """
