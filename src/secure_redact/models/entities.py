"""Data models for the PII redaction pipeline."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set


class PiiCategory(Enum):
    """Categories of personally identifiable information."""

    NAME = "NAME"
    SURNAME = "SURNAME"
    NATIONAL_ID = "NATIONAL_ID"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    ADDRESS = "ADDRESS"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, label) -> "PiiCategory":
        """Coerce a free-text detector label into a category.

        Unknown or non-string labels map to OTHER.
        """
        if isinstance(label, PiiCategory):
            return label
        if not isinstance(label, str):
            return cls.OTHER
        key = label.strip().upper().replace("-", "_").replace(" ", "_")
        key = _CATEGORY_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return cls.OTHER


_CATEGORY_ALIASES = {
    "PESEL": "NATIONAL_ID",
    "FIRST_NAME": "NAME",
    "LAST_NAME": "SURNAME",
    "PHONE_NUMBER": "PHONE",
    "EMAIL_ADDRESS": "EMAIL",
}


# Prompt-facing descriptions of each category
DEFAULT_CATEGORY_DEFINITIONS = {
    PiiCategory.NAME: {
        "display": "First names",
        "desc": "Given names of people, including initials used as names",
        "example": "Jan, Anna, J.",
    },
    PiiCategory.SURNAME: {
        "display": "Surnames",
        "desc": "Family names of people",
        "example": "Kowalski, Smith",
    },
    PiiCategory.NATIONAL_ID: {
        "display": "National identification numbers",
        "desc": "Government-issued personal identifiers such as PESEL, SSN or ID card numbers",
        "example": "85010112345, 123-45-6789",
    },
    PiiCategory.EMAIL: {
        "display": "Email addresses",
        "desc": "Electronic mail addresses",
        "example": "jan.kowalski@example.com",
    },
    PiiCategory.PHONE: {
        "display": "Phone numbers",
        "desc": "Landline, mobile and fax numbers",
        "example": "+48 600 123 456, (555) 123-4567",
    },
    PiiCategory.ADDRESS: {
        "display": "Postal addresses",
        "desc": "Street addresses, postal codes and cities tied to a person",
        "example": "ul. Polna 5/2, 00-001 Warszawa",
    },
    PiiCategory.OTHER: {
        "display": "Other identifiers",
        "desc": "Any other information that identifies a specific person",
        "example": "account numbers, license plates",
    },
}

DEFAULT_ENABLED_CATEGORIES = (
    PiiCategory.NAME,
    PiiCategory.SURNAME,
    PiiCategory.NATIONAL_ID,
    PiiCategory.EMAIL,
)

# Confidence assigned to every vision detection
VISION_CONFIDENCE = 0.9


@dataclass(frozen=True)
class NormalizedBox:
    """Detector box in the 0-1000 normalized space, stored as received."""

    ymin: float
    xmin: float
    ymax: float
    xmax: float

    @classmethod
    def zero(cls) -> "NormalizedBox":
        return cls(0.0, 0.0, 0.0, 0.0)

    @classmethod
    def from_list(cls, values) -> "NormalizedBox":
        """Decode a ``[ymin, xmin, ymax, xmax]`` list.

        Anything that is not four finite numbers degrades to a zero box.
        """
        if not isinstance(values, (list, tuple)) or len(values) != 4:
            return cls.zero()
        coords = []
        for v in values:
            if isinstance(v, bool):
                return cls.zero()
            try:
                number = float(v)
            except (TypeError, ValueError):
                return cls.zero()
            if not math.isfinite(number):
                return cls.zero()
            coords.append(number)
        return cls(*coords)

    def to_list(self) -> list:
        return [self.ymin, self.xmin, self.ymax, self.xmax]


@dataclass(frozen=True)
class PageRaster:
    """One rendered page of the source document."""

    page_number: int  # 1-indexed
    image_data: bytes = field(repr=False)
    pixel_width: int
    pixel_height: int
    mime_type: str = "image/png"

    def __post_init__(self):
        if self.pixel_width <= 0 or self.pixel_height <= 0:
            raise ValueError(
                f"Page {self.page_number} has non-positive size "
                f"{self.pixel_width}x{self.pixel_height}"
            )

    @property
    def orientation(self) -> str:
        return "landscape" if self.pixel_width > self.pixel_height else "portrait"


@dataclass(frozen=True)
class RawDetection:
    """A decoded detector result, before it becomes a mark."""

    text: str
    category: PiiCategory
    box: NormalizedBox


@dataclass(frozen=True)
class RedactionMark:
    """A detected sensitive region on one page. Only removal is supported."""

    id: str
    category: PiiCategory
    source_text: str
    page_number: int  # 1-indexed
    box: NormalizedBox
    confidence: float = VISION_CONFIDENCE

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "category": self.category.value,
            "source_text": self.source_text,
            "page_number": self.page_number,
            "box": self.box.to_list(),
            "confidence": self.confidence,
        }


@dataclass
class RedactionSettings:
    """User-selected categories and free-text keywords for a run."""

    categories: Set[PiiCategory] = field(
        default_factory=lambda: set(DEFAULT_ENABLED_CATEGORIES)
    )
    custom_keywords: List[str] = field(default_factory=list)

    def toggle_category(self, category: PiiCategory) -> bool:
        """Flip membership of *category*. Returns the new membership."""
        if category in self.categories:
            self.categories.discard(category)
            return False
        self.categories.add(category)
        return True

    def add_keyword(self, keyword: str) -> Optional[str]:
        keyword = keyword.strip()
        if not keyword:
            return None
        self.custom_keywords.append(keyword)
        return keyword

    def remove_keyword(self, keyword: str) -> int:
        """Remove every occurrence of *keyword*. Returns how many were removed."""
        before = len(self.custom_keywords)
        self.custom_keywords = [k for k in self.custom_keywords if k != keyword]
        return before - len(self.custom_keywords)

    def ordered_categories(self) -> List[PiiCategory]:
        """Enabled categories in enum declaration order."""
        return [c for c in PiiCategory if c in self.categories]

    def copy(self) -> "RedactionSettings":
        return RedactionSettings(
            categories=set(self.categories),
            custom_keywords=list(self.custom_keywords),
        )


@dataclass
class ExportResult:
    """Serialized output document."""

    filename: str
    data: bytes = field(repr=False)
    page_count: int
    stamp_count: int
