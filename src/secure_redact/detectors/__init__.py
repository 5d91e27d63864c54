"""PII detection modules."""

from .base import BaseDetector
from .vision_detector import DetectorConfig, VisionDetector
from .prompt_builder import BasePromptBuilder, DefaultPromptBuilder, PromptContext

__all__ = [
    "BaseDetector",
    "DetectorConfig",
    "VisionDetector",
    "BasePromptBuilder",
    "DefaultPromptBuilder",
    "PromptContext",
]
