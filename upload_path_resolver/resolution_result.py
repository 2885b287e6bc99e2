"""Data models for upload path resolution results."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from upload_path_resolver.analysis_result import Strategy
from upload_path_resolver.error_record import ErrorRecord, FallbackStrategy
from upload_path_resolver.upload_file import UploadFile


@dataclass(frozen=True)
class ResolutionResult:
    """Represents the outcome of resolving one uploaded file to a relative path."""

    final_path: str
    strategy: Strategy
    duplication_prevented: bool
    reasoning: str
    confidence: float
    processing_time_ms: float
    warnings: tuple[str, ...] = field(default_factory=tuple)
    error: bool = False
    error_info: ErrorRecord | None = None
    fallback_strategy: FallbackStrategy | None = None  # error results only
    original_file: UploadFile | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Freeze metadata so the result cannot change once returned."""
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-ready view of the result."""
        return {
            "original_file": self.original_file.as_dict()
            if self.original_file
            else None,
            "final_path": self.final_path,
            "strategy": self.strategy.value,
            "duplication_prevented": self.duplication_prevented,
            "warnings": list(self.warnings),
            "reasoning": self.reasoning,
            "confidence": self.confidence,
            "processing_time_ms": self.processing_time_ms,
            "error": self.error,
            "error_info": self.error_info.as_dict() if self.error_info else None,
            "fallback_strategy": self.fallback_strategy.value
            if self.fallback_strategy
            else None,
            "metadata": dict(self.metadata),
        }
