"""Abstract base class for output document writers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List

from ..geometry import OutputGeometry
from ..models.entities import PageRaster


@dataclass
class PageStamps:
    """One output page: its raster and the rectangles to stamp, in paint order."""

    page: PageRaster
    stamps: List[OutputGeometry] = field(default_factory=list)


class BaseDocumentWriter(ABC):
    """Interface for output document writers."""

    @abstractmethod
    def write(self, pages: List[PageStamps]) -> bytes:
        """
        Serialize pages into a single output document.

        Args:
            pages: Pages in output order, each with its stamps in paint order
                (later stamps cover earlier ones).

        Returns:
            The encoded document.
        """
