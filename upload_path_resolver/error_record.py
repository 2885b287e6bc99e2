"""Data models for the error taxonomy and recovery outcomes."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """What part of path resolution an error belongs to."""

    PATH_CONSTRUCTION = "path_construction"
    FILESYSTEM = "filesystem"
    VALIDATION = "validation"
    SECURITY = "security"
    DUPLICATION = "duplication"
    UNKNOWN = "unknown"


class ErrorSeverity(str, Enum):
    """How bad an error is; drives the log level."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class FallbackStrategy(str, Enum):
    """Recovery path builders used by the error handler."""

    BASENAME_FALLBACK = "basename_fallback"
    FILESYSTEM_RECOVERY = "filesystem_recovery"
    SECURITY_FALLBACK = "security_fallback"
    DUPLICATION_RECOVERY = "duplication_recovery"
    VALIDATION_RECOVERY = "validation_recovery"
    SAFE_FALLBACK = "safe_fallback"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ErrorRecord:
    """A categorized error with the context it happened in."""

    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    timestamp: datetime = field(default_factory=_utcnow)
    context: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-ready view of the record."""
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "context": {k: str(v) for k, v in self.context.items()},
        }


@dataclass
class FallbackResult:
    """A recovery path produced after an error."""

    path: str
    strategy: FallbackStrategy
    reasoning: str
    warnings: list[str] = field(default_factory=list)
    error_info: ErrorRecord | None = None
    success: bool = True


@dataclass(frozen=True)
class OperationOutcome:
    """Result of a retried external operation."""

    success: bool
    attempts: int
    recovered: bool
    result: Any = None
    error: BaseException | None = None
    error_info: ErrorRecord | None = None


@dataclass(frozen=True)
class RecoveryValidation:
    """Verdict on whether a recovery path is safe to hand to the writer."""

    is_valid: bool
    sanitized_path: str | None = None
    error: str | None = None
    warnings: tuple[str, ...] = ()
