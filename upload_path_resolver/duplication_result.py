"""Data models for duplicate path segment detection."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DuplicationType(str, Enum):
    """Kinds of duplication the detector can report."""

    NONE = "none"
    CONSECUTIVE = "consecutive"
    USER_PATTERN = "user_pattern"
    ERROR = "error"


@dataclass(frozen=True)
class DuplicationResult:
    """Outcome of analysing a single path for duplicated segments."""

    has_duplication: bool
    duplication_type: DuplicationType
    original_path: str
    suggested_path: str
    confidence: float
    duplicated_segments: tuple[str, ...] = field(default_factory=tuple)
    duplicated_pattern: str = ""
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-ready view of the detection."""
        return {
            "has_duplication": self.has_duplication,
            "duplication_type": self.duplication_type.value,
            "duplicated_segments": list(self.duplicated_segments),
            "duplicated_pattern": self.duplicated_pattern,
            "original_path": self.original_path,
            "suggested_path": self.suggested_path,
            "confidence": self.confidence,
            "error": self.error,
        }
