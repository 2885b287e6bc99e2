"""Logic for resolving the final relative path of each uploaded file."""

import logging
import threading
import time
import uuid
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from enum import Enum
from typing import Any

from upload_path_resolver.analysis_result import AnalysisResult, Strategy
from upload_path_resolver.duplication_detector import DuplicationDetector
from upload_path_resolver.duplication_result import DuplicationResult, DuplicationType
from upload_path_resolver.error_handler import ErrorHandler
from upload_path_resolver.error_record import OperationOutcome, RecoveryValidation
from upload_path_resolver.errors import (
    DuplicationAnalysisError,
    PathConstructionError,
    PathResolutionError,
    PathSecurityError,
    UploadValidationError,
)
from upload_path_resolver.load_config import DEFAULT_CONFIG
from upload_path_resolver.path_analysis_engine import PathAnalysisEngine
from upload_path_resolver.path_construction_strategy import PathConstructionStrategy
from upload_path_resolver.performance_monitor import PerformanceMonitor
from upload_path_resolver.resolution_result import ResolutionResult
from upload_path_resolver.upload_file import ResolutionContext, UploadFile

logger = logging.getLogger(__name__)

ERROR_CONFIDENCE = 0.1


class ResolutionStep(str, Enum):
    """Steps of a single resolution, recorded in the error context."""

    VALIDATE = "validate"
    ANALYZE = "analysis"
    CONSTRUCT = "construction"
    CHECK_DUPLICATION = "duplication_analysis"
    APPLY_FIX = "duplication_fix"
    ASSEMBLE = "result_creation"


class UploadPathResolver:
    """Resolves upload paths, preventing duplicated folder segments.

    Every collaborator can be injected; anything not given is built from
    config. resolve_path() never raises.
    """

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        analysis_engine: PathAnalysisEngine | None = None,
        construction: PathConstructionStrategy | None = None,
        detector: DuplicationDetector | None = None,
        error_handler: ErrorHandler | None = None,
        monitor: PerformanceMonitor | None = None,
    ) -> None:
        """Initialize the resolver and its collaborators."""
        self.config = config or DEFAULT_CONFIG
        self.analysis_engine = analysis_engine or PathAnalysisEngine()
        self.construction = construction or PathConstructionStrategy()
        self.detector = detector or DuplicationDetector()
        self.error_handler = error_handler or ErrorHandler(
            self.config, sanitizer=self.construction.sanitizer
        )
        self.monitor = monitor or PerformanceMonitor(self.config)

        self._lock = threading.Lock()
        self._reset_counters()

    def __enter__(self) -> "UploadPathResolver":
        """Start the monitor's background tasks."""
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        """Stop the monitor's background tasks."""
        self.stop()

    def start(self) -> None:
        """Start cache sweeping and periodic metrics emission."""
        self.monitor.start()

    def stop(self) -> None:
        """Stop the background tasks."""
        self.monitor.stop()

    def resolve_path(
        self,
        file: UploadFile | None,
        dest_folder: str,
        batch: Iterable[UploadFile] | None = None,
    ) -> ResolutionResult:
        """Resolve one file to a relative path under dest_folder.

        The batch is used to tell folder uploads from individual files; it
        defaults to the file alone.
        """
        batch_error: TypeError | None = None
        if batch is None:
            batch = (file,) if file is not None else ()
        else:
            try:
                batch = tuple(batch)
            except TypeError as exc:
                batch, batch_error = (), exc

        tracker = self.monitor.start_path_resolution(
            f"resolve_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}",
            {
                "filename": getattr(file, "original_name", None) or "unknown",
                "dest_folder": dest_folder,
                "batch_size": len(batch),
            },
        )
        context: dict[str, Any] = {
            "file": file,
            "dest_folder": dest_folder,
            "batch_size": len(batch),
            "step": ResolutionStep.VALIDATE.value,
        }

        try:
            if batch_error is not None:
                msg = f"Input validation failed: batch must be iterable: {batch_error}"
                raise UploadValidationError(msg) from batch_error
            self._validate(file, dest_folder)

            context["step"] = ResolutionStep.ANALYZE.value
            tracker.add_sample("analysis_start")
            try:
                analysis_run = self.monitor.monitor_path_analysis(
                    batch, dest_folder, self.analysis_engine.analyze_upload_context
                )
            except Exception as exc:
                msg = f"Path analysis failed: {exc}"
                raise PathConstructionError(msg) from exc
            analysis: AnalysisResult = analysis_run.value
            tracker.add_sample("analysis_complete", strategy=analysis.strategy.value)

            context["step"] = ResolutionStep.CONSTRUCT.value
            warnings = list(analysis.warnings)
            initial_path = self._construct(file, dest_folder, analysis.strategy, warnings)
            context["initial_path"] = initial_path

            context["step"] = ResolutionStep.CHECK_DUPLICATION.value
            tracker.add_sample("duplication_analysis_start")
            path_to_check = initial_path
            if file.has_hint and analysis.strategy != Strategy.WEBKIT_PATH:
                path_to_check = self.construction.construct_webkit_path(dest_folder, file)
            try:
                duplication_run = self.monitor.monitor_duplication_detection(
                    path_to_check, self.detector.analyze_path_duplication
                )
            except Exception as exc:
                msg = f"Duplication analysis failed: {exc}"
                raise DuplicationAnalysisError(msg) from exc
            duplication: DuplicationResult = duplication_run.value
            tracker.add_sample(
                "duplication_analysis_complete",
                has_duplication=duplication.has_duplication,
                duplication_type=duplication.duplication_type.value,
            )
            if duplication.duplication_type == DuplicationType.ERROR:
                warnings.append(f"Duplication analysis skipped: {duplication.error}")

            context["step"] = ResolutionStep.APPLY_FIX.value
            final_path = self._apply_duplication_fix(
                file, dest_folder, initial_path, duplication, warnings
            )

            context["step"] = ResolutionStep.ASSEMBLE.value
            strategy = self._realized_strategy(
                file, dest_folder, final_path, analysis.strategy
            )
            if duplication.has_duplication:
                warnings.append(
                    "Path duplication detected and fixed: "
                    f"{duplication.duplication_type.value}"
                )

            duration_ms = tracker.finish(
                success=True,
                strategy=strategy.value,
                duplication_prevented=duplication.has_duplication,
            )
            metrics = self.monitor.get_metrics()
            result = ResolutionResult(
                final_path=final_path,
                strategy=strategy,
                duplication_prevented=duplication.has_duplication,
                reasoning=_reasoning(analysis, duplication, strategy),
                confidence=analysis.confidence,
                processing_time_ms=round(duration_ms, 3),
                warnings=tuple(warnings),
                original_file=file,
                metadata={
                    "upload_type": analysis.upload_type.value,
                    "duplication_type": duplication.duplication_type.value,
                    "original_analysis_strategy": analysis.strategy.value,
                    "duplication_confidence": duplication.confidence,
                    "analysis_from_cache": analysis_run.from_cache,
                    "duplication_from_cache": duplication_run.from_cache,
                    "cache_hits": metrics["cache"]["hits"],
                    "total_operations": metrics["operations"]["path_resolution"][
                        "count"
                    ],
                },
            )
        except Exception as exc:  # noqa: BLE001
            return self._error_result(exc, context, tracker)

        self._count(result)
        logger.debug(
            "Resolved %r -> %s (%s, duplication_prevented=%s)",
            file.original_name,
            result.final_path,
            result.strategy.value,
            result.duplication_prevented,
        )
        return result

    def resolve_paths_batch(
        self, files: Sequence[UploadFile], dest_folder: str
    ) -> list[ResolutionResult]:
        """Resolve every file in order, using the whole list as batch context."""
        if not isinstance(files, (list, tuple)):
            msg = "Files must be provided as a list or tuple"
            raise TypeError(msg)

        batch = tuple(files)
        logger.info("Resolving %d files into %r", len(batch), dest_folder)
        results = [self.resolve_path(file, dest_folder, batch) for file in batch]

        errors = sum(1 for r in results if r.error)
        prevented = sum(1 for r in results if r.duplication_prevented)
        logger.info(
            "Batch resolved: %d files, %d duplications prevented, %d errors",
            len(results),
            prevented,
            errors,
        )
        return results

    def resolve_context(self, context: ResolutionContext) -> list[ResolutionResult]:
        """Resolve every file of a ResolutionContext."""
        return self.resolve_paths_batch(context.batch, context.destination_folder)

    async def perform_filesystem_operation(
        self,
        operation: Callable[[], Any],
        context: dict[str, Any] | None = None,
        max_retries: int | None = None,
    ) -> OperationOutcome:
        """Run an external filesystem operation with retries."""
        return await self.error_handler.handle_filesystem_operation(
            operation, context, max_retries
        )

    def validate_recovery_path(
        self, path: str, context: dict[str, Any] | None = None
    ) -> RecoveryValidation:
        return self.error_handler.validate_recovery_path(path, context)

    def create_safe_fallback_path(self, context: dict[str, Any] | None = None) -> str:
        return self.error_handler.create_safe_fallback_path(context)

    def get_error_statistics(self) -> dict[str, Any]:
        return self.error_handler.get_error_statistics()

    def reset_error_statistics(self) -> None:
        self.error_handler.reset_error_statistics()

    def optimized_string_operation(self, operation: str, value: Any) -> Any:
        return self.monitor.optimized_string_operation(operation, value)

    def get_performance_history(self, limit: int | None = 100) -> list[dict[str, Any]]:
        return self.monitor.get_performance_history(limit)

    def clear_performance_cache(self) -> None:
        self.monitor.clear_cache()

    def get_performance_metrics(self) -> dict[str, Any]:
        """Combine the resolver's counters with the monitor's metrics."""
        with self._lock:
            total = self._total
            resolver = {
                "total_resolutions": total,
                "errors": self._errors,
                "duplications_prevented": self._duplications_prevented,
                "strategies_used": {k.value: v for k, v in self._strategies.items()},
                "average_processing_time_ms": round(self._total_time_ms / total, 3)
                if total
                else 0.0,
            }

        monitor = self.monitor.get_metrics()
        return {
            "resolver": resolver,
            "monitor": monitor,
            "benchmarks": self.monitor.get_benchmarks(),
            "summary": {
                "duplication_prevention_rate": round(
                    resolver["duplications_prevented"] / total * 100, 2
                )
                if total
                else 0.0,
                "error_rate": round(resolver["errors"] / total * 100, 2)
                if total
                else 0.0,
                "cache_hit_rate": monitor["cache"]["hit_rate"],
                "average_processing_time_ms": resolver["average_processing_time_ms"],
            },
        }

    def reset_performance_metrics(self) -> None:
        """Zero the resolver counters and the monitor's stats."""
        with self._lock:
            self._reset_counters()
        self.monitor.reset_metrics()

    def _validate(self, file: Any, dest_folder: Any) -> None:
        if file is None:
            msg = "Input validation failed: file object is required"
            raise UploadValidationError(msg)
        name = getattr(file, "original_name", None)
        if not name or not isinstance(name, str):
            msg = "Input validation failed: file must have a non-empty original name"
            raise UploadValidationError(msg)
        if not dest_folder or not isinstance(dest_folder, str):
            msg = "Input validation failed: destination folder must be a non-empty string"
            raise UploadValidationError(msg)
        if ".." in dest_folder:
            msg = "Input validation failed: destination folder contains directory traversal"
            raise PathSecurityError(msg)

    def _construct(
        self,
        file: UploadFile,
        dest_folder: str,
        strategy: Strategy,
        warnings: list[str],
    ) -> str:
        builders = {
            Strategy.WEBKIT_PATH: self.construction.construct_webkit_path,
            Strategy.SMART_PATH: self.construction.construct_smart_path,
        }
        builder = builders.get(strategy)
        if builder is None or not file.has_hint:
            if builder is not None:
                logger.debug(
                    "%s requested without a relative path hint for %r, using basename",
                    strategy.value,
                    file.original_name,
                )
            builder = self.construction.construct_basename

        try:
            return builder(dest_folder, file)
        except PathResolutionError as exc:
            if builder == self.construction.construct_basename:
                msg = f"All path construction strategies failed: {exc}"
                raise PathConstructionError(msg) from exc
            logger.warning(
                "Strategy %s failed for %r: %s", strategy.value, file.original_name, exc
            )
            warnings.append(f"Strategy {strategy.value} failed, used basename: {exc}")

        try:
            return self.construction.construct_basename(dest_folder, file)
        except PathResolutionError as exc:
            msg = f"All path construction strategies failed: {exc}"
            raise PathConstructionError(msg) from exc

    def _apply_duplication_fix(
        self,
        file: UploadFile,
        dest_folder: str,
        initial_path: str,
        duplication: DuplicationResult,
        warnings: list[str],
    ) -> str:
        if not duplication.has_duplication:
            return initial_path

        suggested = duplication.suggested_path
        if suggested and self._is_under_destination(suggested, dest_folder):
            return suggested

        # smart_path needs a hint, like in CONSTRUCT
        if duplication.duplication_type == DuplicationType.CONSECUTIVE and file.has_hint:
            correct = self.construction.construct_smart_path
        else:
            correct = self.construction.construct_basename
        try:
            return correct(dest_folder, file)
        except PathResolutionError as exc:
            logger.warning(
                "Duplication correction failed for %r, keeping %s: %s",
                file.original_name,
                initial_path,
                exc,
            )
            warnings.append(f"Duplication correction failed, kept {initial_path}: {exc}")
            return initial_path

    def _is_under_destination(self, path: str, dest_folder: str) -> bool:
        if not self.construction.is_valid_path(path):
            return False
        safe_dest = self.construction.sanitizer.sanitize_path(dest_folder)
        dest_segments = self.monitor.optimized_string_operation(
            "segment_split", safe_dest
        )
        path_segments = self.monitor.optimized_string_operation("segment_split", path)
        return (
            len(path_segments) > len(dest_segments)
            and path_segments[: len(dest_segments)] == dest_segments
        )

    def _realized_strategy(
        self,
        file: UploadFile,
        dest_folder: str,
        final_path: str,
        recommended: Strategy,
    ) -> Strategy:
        builders = {
            Strategy.BASENAME: self.construction.construct_basename,
            Strategy.WEBKIT_PATH: self.construction.construct_webkit_path,
            Strategy.SMART_PATH: self.construction.construct_smart_path,
        }
        candidates = [recommended, *(s for s in builders if s != recommended)]
        for strategy in candidates:
            builder = builders.get(strategy)
            if builder is None:
                continue
            try:
                if builder(dest_folder, file) == final_path:
                    return strategy
            except PathResolutionError:
                continue
        return Strategy.CUSTOM

    def _error_result(
        self, error: Exception, context: dict[str, Any], tracker: Any
    ) -> ResolutionResult:
        fallback = self.error_handler.handle_path_construction_error(error, context)
        duration_ms = tracker.finish(error=True, step=context.get("step"))
        record = fallback.error_info
        file = context.get("file")

        result = ResolutionResult(
            final_path=fallback.path,
            strategy=Strategy.CUSTOM,
            duplication_prevented=False,
            reasoning=fallback.reasoning,
            confidence=ERROR_CONFIDENCE,
            processing_time_ms=round(duration_ms, 3),
            warnings=tuple(fallback.warnings),
            error=True,
            error_info=record,
            fallback_strategy=fallback.strategy,
            original_file=file if isinstance(file, UploadFile) else None,
            metadata={
                "upload_type": "unknown",
                "duplication_type": DuplicationType.NONE.value,
                "original_analysis_strategy": "error_fallback",
                "duplication_confidence": 0.0,
                "error_category": record.category.value if record else None,
                "error_severity": record.severity.value if record else None,
                "step": context.get("step"),
            },
        )
        self._count(result)
        return result

    def _count(self, result: ResolutionResult) -> None:
        with self._lock:
            self._total += 1
            self._total_time_ms += result.processing_time_ms
            self._strategies[result.strategy] += 1
            if result.error:
                self._errors += 1
            if result.duplication_prevented:
                self._duplications_prevented += 1

    def _reset_counters(self) -> None:
        self._total = 0
        self._total_time_ms = 0.0
        self._errors = 0
        self._duplications_prevented = 0
        self._strategies: Counter[Strategy] = Counter()


def _reasoning(
    analysis: AnalysisResult, duplication: DuplicationResult, strategy: Strategy
) -> str:
    parts = [
        f"Upload analysis: {analysis.reasoning}.",
        f"Initial strategy: {analysis.strategy.value}.",
    ]
    if duplication.has_duplication:
        parts.append(
            f"Duplication detected ({duplication.duplication_type.value}), applied fixes."
        )
    parts.append(f"Final strategy: {strategy.value}.")
    return " ".join(parts)
