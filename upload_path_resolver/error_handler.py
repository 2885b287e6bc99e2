"""Logic for categorizing resolution errors and building recovery paths."""

import asyncio
import errno
import inspect
import logging
import threading
import time
import uuid
from collections import Counter
from collections.abc import Callable
from typing import Any

from upload_path_resolver.error_record import (
    ErrorCategory,
    ErrorRecord,
    ErrorSeverity,
    FallbackResult,
    FallbackStrategy,
    OperationOutcome,
    RecoveryValidation,
)
from upload_path_resolver.load_config import DEFAULT_CONFIG
from upload_path_resolver.sanitizer import (
    FORBIDDEN_CHARS_RE,
    MAX_PATH_LENGTH,
    UNNAMED_FILE,
    Sanitizer,
    is_absolute,
    split_extension,
    split_segments,
)

logger = logging.getLogger(__name__)

# First match wins
MESSAGE_RULES: tuple[tuple[tuple[str, ...], ErrorCategory, ErrorSeverity], ...] = (
    (("enoent", "enotdir"), ErrorCategory.FILESYSTEM, ErrorSeverity.MEDIUM),
    (("eacces", "eperm"), ErrorCategory.FILESYSTEM, ErrorSeverity.HIGH),
    (("emfile", "enfile"), ErrorCategory.FILESYSTEM, ErrorSeverity.CRITICAL),
    (("security", "traversal"), ErrorCategory.SECURITY, ErrorSeverity.HIGH),
    (("duplication", "duplicate"), ErrorCategory.DUPLICATION, ErrorSeverity.LOW),
    (("path",), ErrorCategory.PATH_CONSTRUCTION, ErrorSeverity.MEDIUM),
    (("validation", "invalid"), ErrorCategory.VALIDATION, ErrorSeverity.MEDIUM),
)

CATEGORY_SEVERITY = {
    ErrorCategory.SECURITY: ErrorSeverity.HIGH,
    ErrorCategory.DUPLICATION: ErrorSeverity.LOW,
}

SEVERITY_LOG_LEVEL = {
    ErrorSeverity.CRITICAL: logging.ERROR,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.LOW: logging.INFO,
}


class ErrorHandler:
    """Turns resolution failures into usable fallback paths and keeps statistics."""

    def __init__(
        self, config: dict[str, Any] | None = None, sanitizer: Sanitizer | None = None
    ) -> None:
        """Initialize the handler from the 'errors' and 'logging' config sections."""
        config = config or DEFAULT_CONFIG
        errors_cfg = {**DEFAULT_CONFIG["errors"], **config.get("errors", {})}
        self.max_retries = int(errors_cfg["max_retries"])
        self.retry_delay_ms = float(errors_cfg["retry_delay_ms"])
        self.fallback_directory = errors_cfg["fallback_directory"]
        self.detailed_logging = bool(config.get("logging", {}).get("detailed", False))
        self.sanitizer = sanitizer or Sanitizer()

        self._lock = threading.Lock()
        self._by_category: Counter[ErrorCategory] = Counter()
        self._by_severity: Counter[ErrorSeverity] = Counter()
        self._total_errors = 0
        self._recovery_successes = 0
        self._fallback_usages = 0

    def categorize_error(
        self, error: BaseException, context: dict[str, Any] | None = None
    ) -> ErrorRecord:
        """Classify an exception into a category and severity."""
        context = dict(context or {})
        message = str(error) or type(error).__name__

        explicit = getattr(error, "category", None)
        if isinstance(explicit, ErrorCategory):
            severity = CATEGORY_SEVERITY.get(explicit, ErrorSeverity.MEDIUM)
            return ErrorRecord(explicit, severity, message, context=context)

        haystack = message
        if isinstance(error, OSError) and error.errno in errno.errorcode:
            haystack = f"{errno.errorcode[error.errno]} {message}"
        haystack = haystack.lower()

        for needles, category, severity in MESSAGE_RULES:
            if any(needle in haystack for needle in needles):
                return ErrorRecord(category, severity, message, context=context)

        return ErrorRecord(
            ErrorCategory.UNKNOWN, ErrorSeverity.MEDIUM, message, context=context
        )

    def handle_path_construction_error(
        self, error: BaseException, context: dict[str, Any] | None = None
    ) -> FallbackResult:
        """Record the error and build a recovery path for it. Never raises."""
        context = dict(context or {})
        record = self.categorize_error(error, context)
        self._record(record)
        self._log(record, error)

        builders: dict[ErrorCategory, Callable[[dict[str, Any]], FallbackResult]] = {
            ErrorCategory.PATH_CONSTRUCTION: self._path_construction_fallback,
            ErrorCategory.FILESYSTEM: self._filesystem_fallback,
            ErrorCategory.SECURITY: self._security_fallback,
            ErrorCategory.DUPLICATION: self._duplication_fallback,
            ErrorCategory.VALIDATION: self._validation_fallback,
        }
        builder = builders.get(record.category, self._unknown_fallback)
        fallback = builder(context)

        verdict = self.validate_recovery_path(fallback.path, context)
        if not verdict.is_valid:
            logger.warning(
                "Recovery path %r rejected (%s), using safe fallback",
                fallback.path,
                verdict.error,
            )
            warnings = [*fallback.warnings, f"Recovery path rejected: {verdict.error}"]
            fallback = self._safe_fallback(
                {**context, "dest_folder": None}, "Recovery path failed validation"
            )
            fallback.warnings[:0] = warnings

        fallback.error_info = record
        return fallback

    def create_safe_fallback_path(self, context: dict[str, Any] | None = None) -> str:
        """Build a collision-resistant path that is always valid."""
        context = context or {}
        filename = self._filename(context)
        stem, ext = split_extension(filename) if filename else ("file", "")
        ext = ext or ".file"

        timestamp = int(time.time() * 1000)
        random_id = uuid.uuid4().hex[:9]
        filename = f"{stem}_{timestamp}_{random_id}{ext}"

        dest = self.sanitizer.sanitize_path(context.get("dest_folder") or "")
        if not dest or len(dest) + len(filename) + 1 > MAX_PATH_LENGTH:
            dest = self.sanitizer.sanitize_path(self.fallback_directory) or "uploads"

        with self._lock:
            self._fallback_usages += 1
        return f"{dest}/{filename}"

    async def handle_filesystem_operation(
        self,
        operation: Callable[[], Any],
        context: dict[str, Any] | None = None,
        max_retries: int | None = None,
    ) -> OperationOutcome:
        """Run operation with exponential backoff between sequential attempts.

        The operation may be a plain or an async callable. The outcome reports
        whether it succeeded, how many attempts it took and whether a retry
        was needed.
        """
        retries = self.max_retries if max_retries is None else max_retries
        last_error: BaseException | None = None

        for attempt in range(1, retries + 2):
            try:
                result = operation()
                if inspect.isawaitable(result):
                    result = await result
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                logger.debug("Attempt %d/%d failed: %s", attempt, retries + 1, exc)
                if attempt <= retries:
                    delay_ms = self.retry_delay_ms * 2 ** (attempt - 1)
                    await asyncio.sleep(delay_ms / 1000)
                continue

            recovered = attempt > 1
            if recovered:
                with self._lock:
                    self._recovery_successes += 1
                logger.info("Filesystem operation recovered after %d attempts", attempt)
            return OperationOutcome(
                success=True, attempts=attempt, recovered=recovered, result=result
            )

        record = self.categorize_error(last_error, context)
        self._record(record)
        self._log(record, last_error)
        return OperationOutcome(
            success=False,
            attempts=retries + 1,
            recovered=False,
            error=last_error,
            error_info=record,
        )

    def validate_recovery_path(
        self,
        path: Any,
        context: dict[str, Any] | None = None,  # noqa: ARG002
    ) -> RecoveryValidation:
        """Check that a recovery path is relative, short and free of traversal."""
        if not path or not isinstance(path, str):
            return RecoveryValidation(False, error="Recovery path is empty or not a string")
        if is_absolute(path):
            return RecoveryValidation(False, error="Recovery path is absolute")
        if ".." in split_segments(path):
            return RecoveryValidation(False, error="Recovery path contains traversal")
        if len(path) > MAX_PATH_LENGTH:
            return RecoveryValidation(False, error="Recovery path is too long")
        if FORBIDDEN_CHARS_RE.search(path):
            return RecoveryValidation(
                False, error="Recovery path contains forbidden characters"
            )

        warnings = ()
        sanitized = self.sanitizer.sanitize_path(path)
        if sanitized != path:
            warnings = ("Recovery path was normalized",)
        return RecoveryValidation(True, sanitized_path=sanitized, warnings=warnings)

    def get_error_statistics(self) -> dict[str, Any]:
        """Return counts and percentage distributions of handled errors."""
        with self._lock:
            total = self._total_errors
            by_category = dict(self._by_category)
            by_severity = dict(self._by_severity)
            recoveries = self._recovery_successes
            fallbacks = self._fallback_usages

        def percentages(counts: dict[Any, int]) -> dict[str, float]:
            if not total:
                return {}
            return {k.value: round(v / total * 100, 2) for k, v in counts.items()}

        attempts = recoveries + total
        return {
            "total_errors": total,
            "errors_by_category": {k.value: v for k, v in by_category.items()},
            "errors_by_severity": {k.value: v for k, v in by_severity.items()},
            "recovery_successes": recoveries,
            "fallback_usages": fallbacks,
            "recovery_success_rate": round(recoveries / attempts * 100, 2)
            if attempts
            else 0.0,
            "category_distribution": percentages(by_category),
            "severity_distribution": percentages(by_severity),
        }

    def reset_error_statistics(self) -> None:
        """Clear every counter."""
        with self._lock:
            self._by_category.clear()
            self._by_severity.clear()
            self._total_errors = 0
            self._recovery_successes = 0
            self._fallback_usages = 0

    def _record(self, record: ErrorRecord) -> None:
        with self._lock:
            self._total_errors += 1
            self._by_category[record.category] += 1
            self._by_severity[record.severity] += 1

    def _log(self, record: ErrorRecord, error: BaseException | None) -> None:
        level = SEVERITY_LOG_LEVEL[record.severity]
        logger.log(
            level,
            "[%s/%s] %s (step=%s)",
            record.category.value,
            record.severity.value,
            record.message,
            record.context.get("step", "unknown"),
            exc_info=error if self.detailed_logging else None,
        )

    def _path_construction_fallback(self, context: dict[str, Any]) -> FallbackResult:
        path = self._basename_path(context)
        if path is None:
            return self._safe_fallback(context, "Basename fallback unavailable")
        return FallbackResult(
            path=path,
            strategy=FallbackStrategy.BASENAME_FALLBACK,
            reasoning="Path construction failed, fell back to basename",
            warnings=["Used basename fallback after path construction error"],
        )

    def _filesystem_fallback(self, context: dict[str, Any]) -> FallbackResult:
        dest = self.sanitizer.sanitize_path(context.get("dest_folder") or "")
        filename = self._filename(context)
        if not dest or filename is None:
            return self._safe_fallback(context, "Filesystem recovery unavailable")
        return FallbackResult(
            path=f"{dest}/recovered/{filename}",
            strategy=FallbackStrategy.FILESYSTEM_RECOVERY,
            reasoning="Filesystem error, routed file to a recovery folder",
            warnings=["File placed in recovery folder after filesystem error"],
        )

    def _security_fallback(self, context: dict[str, Any]) -> FallbackResult:
        fallback = self._safe_fallback(
            {**context, "dest_folder": None}, "Security violation in path"
        )
        fallback.strategy = FallbackStrategy.SECURITY_FALLBACK
        fallback.warnings.insert(
            0, "Security issue detected, file isolated in fallback directory"
        )
        return fallback

    def _duplication_fallback(self, context: dict[str, Any]) -> FallbackResult:
        dest = self.sanitizer.sanitize_path(context.get("dest_folder") or "")
        filename = self._filename(context)
        if not dest or filename is None:
            return self._safe_fallback(context, "Duplication recovery unavailable")
        stem, ext = split_extension(filename)
        return FallbackResult(
            path=f"{dest}/{stem}_{int(time.time() * 1000)}{ext}",
            strategy=FallbackStrategy.DUPLICATION_RECOVERY,
            reasoning="Duplication analysis failed, used a timestamped basename",
            warnings=["Timestamp added to filename after duplication error"],
        )

    def _validation_fallback(self, context: dict[str, Any]) -> FallbackResult:
        path = self._basename_path(context)
        if path is None:
            return self._safe_fallback(context, "Validation recovery unavailable")
        return FallbackResult(
            path=path,
            strategy=FallbackStrategy.VALIDATION_RECOVERY,
            reasoning="Validation failed, rebuilt path from sanitized parts",
            warnings=["Path re-sanitized after validation error"],
        )

    def _unknown_fallback(self, context: dict[str, Any]) -> FallbackResult:
        fallback = self._safe_fallback(context, "Unknown error")
        fallback.warnings.append("Unknown error type, used safe fallback")
        return fallback

    def _safe_fallback(self, context: dict[str, Any], reason: str) -> FallbackResult:
        return FallbackResult(
            path=self.create_safe_fallback_path(context),
            strategy=FallbackStrategy.SAFE_FALLBACK,
            reasoning=f"{reason}, used safe fallback path",
            warnings=["Used safe fallback path"],
        )

    def _filename(self, context: dict[str, Any]) -> str | None:
        name = _original_name(context.get("file"))
        segments = split_segments(name or "")
        if not segments:
            return None
        filename = self.sanitizer.sanitize_filename(segments[-1])
        return None if filename == UNNAMED_FILE else filename

    def _basename_path(self, context: dict[str, Any]) -> str | None:
        dest = self.sanitizer.sanitize_path(context.get("dest_folder") or "")
        filename = self._filename(context)
        if not dest or filename is None:
            return None
        return f"{dest}/{filename}"


def _original_name(file: Any) -> str | None:
    name = getattr(file, "original_name", None)
    return name if isinstance(name, str) and name else None
