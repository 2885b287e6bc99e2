"""Data models for upload classification results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class UploadType(str, Enum):
    """How a batch of files was uploaded."""

    INDIVIDUAL = "individual"
    FOLDER = "folder"


class Strategy(str, Enum):
    """Path construction methods.

    CUSTOM is never recommended by the analysis engine; it only labels a
    final path that no standard strategy reproduces.
    """

    BASENAME = "basename"
    WEBKIT_PATH = "webkit_path"
    SMART_PATH = "smart_path"
    CUSTOM = "custom"


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of classifying an upload batch."""

    upload_type: UploadType
    strategy: Strategy
    confidence: float
    warnings: tuple[str, ...] = field(default_factory=tuple)
    reasoning: str = ""

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-ready view of the analysis."""
        return {
            "upload_type": self.upload_type.value,
            "strategy": self.strategy.value,
            "confidence": self.confidence,
            "warnings": list(self.warnings),
            "reasoning": self.reasoning,
        }
