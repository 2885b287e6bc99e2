"""Timing, caching and alerting around the path resolution components."""

import logging
import threading
import time
from collections import Counter, deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from upload_path_resolver.compute_cache_key import (
    analysis_cache_key,
    duplication_cache_key,
)
from upload_path_resolver.load_config import DEFAULT_CONFIG
from upload_path_resolver.operation_stats import OperationStats
from upload_path_resolver.periodic_task import PeriodicTask
from upload_path_resolver.result_cache import MISSING, ResultCache
from upload_path_resolver.string_optimizer import StringOptimizer

logger = logging.getLogger(__name__)


class MonitorEvent(str, Enum):
    """Events a subscriber can listen for."""

    PERFORMANCE_ALERT = "performance_alert"
    METRICS_UPDATE = "metrics_update"
    CACHE_CLEARED = "cache_cleared"
    METRICS_RESET = "metrics_reset"


class OperationType(str, Enum):
    """Kinds of timed operations, each with its own alert threshold."""

    PATH_RESOLUTION = "path_resolution"
    DUPLICATION_DETECTION = "duplication_detection"
    PATH_ANALYSIS = "path_analysis"
    STRING_OPERATIONS = "string_operations"


@dataclass(frozen=True)
class Monitored:
    """A value computed (or fetched from cache) under monitoring."""

    value: Any
    from_cache: bool
    duration_ms: float


class OperationTracker:
    """Times one path resolution from start to finish."""

    def __init__(
        self,
        monitor: "PerformanceMonitor",
        operation_id: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the tracker; the clock starts now."""
        self.monitor = monitor
        self.operation_id = operation_id
        self.context = dict(context or {})
        self.samples: list[dict[str, Any]] = []
        self.started_at = monitor.clock()
        self.duration_ms: float | None = None

    def add_sample(self, name: str, **data: Any) -> None:
        """Attach an intermediate measurement to this operation."""
        elapsed_ms = (self.monitor.clock() - self.started_at) * 1000
        self.samples.append({"name": name, "elapsed_ms": round(elapsed_ms, 3), **data})

    def finish(self, **result: Any) -> float:
        """Stop the clock, record the duration and return it in ms."""
        if self.duration_ms is not None:
            return self.duration_ms
        self.duration_ms = (self.monitor.clock() - self.started_at) * 1000
        self.monitor.record_operation(
            OperationType.PATH_RESOLUTION,
            self.duration_ms,
            error=bool(result.get("error")),
            details={
                "operation_id": self.operation_id,
                "samples": list(self.samples),
                **self.context,
                **result,
            },
        )
        return self.duration_ms


class PerformanceMonitor:
    """Caches analysis and duplication results and keeps per-operation stats.

    Subscribers registered with subscribe() receive MonitorEvent payloads.
    Background sweeping and periodic metrics emission only run between
    start() and stop().
    """

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        clock: Callable[[], float] = time.perf_counter,
        cache_clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the monitor from the cache, alerts and metrics config."""
        config = config or DEFAULT_CONFIG
        cache_cfg = {**DEFAULT_CONFIG["cache"], **config.get("cache", {})}
        alerts_cfg = {**DEFAULT_CONFIG["alerts"], **config.get("alerts", {})}
        metrics_cfg = {**DEFAULT_CONFIG["metrics"], **config.get("metrics", {})}

        self.clock = clock
        self.cache_enabled = bool(cache_cfg["enabled"])
        self.alerts_enabled = bool(alerts_cfg["enabled"])
        self.thresholds_ms = {
            **DEFAULT_CONFIG["alerts"]["thresholds_ms"],
            **alerts_cfg.get("thresholds_ms", {}),
        }
        self.detailed = bool(metrics_cfg["detailed"])

        self.cache = ResultCache(
            max_size=int(cache_cfg["max_size"]),
            ttl_ms=float(cache_cfg["ttl_ms"]),
            clock=cache_clock,
        )
        self.strings = StringOptimizer()

        self._lock = threading.RLock()
        self._subscribers: dict[MonitorEvent, list[Callable[[Any], None]]] = {
            event: [] for event in MonitorEvent
        }
        self._history: deque[dict[str, Any]] = deque(
            maxlen=int(metrics_cfg["history_size"])
        )
        self._reset_counters()

        self._tasks = [
            PeriodicTask(
                "upload-cache-sweep", float(cache_cfg["ttl_ms"]) / 4000, self.sweep
            ),
            PeriodicTask(
                "upload-metrics",
                float(metrics_cfg["update_interval_ms"]) / 1000,
                self.emit_metrics_update,
            ),
        ]

    def __enter__(self) -> "PerformanceMonitor":
        """Start the background tasks."""
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        """Stop the background tasks."""
        self.stop()

    def start(self) -> None:
        """Start cache sweeping and periodic metrics emission."""
        for task in self._tasks:
            task.start()

    def stop(self) -> None:
        """Stop and join the background tasks."""
        for task in self._tasks:
            task.stop()

    @property
    def is_running(self) -> bool:
        """Return True while any background task is alive."""
        return any(task.is_running for task in self._tasks)

    def subscribe(self, event: MonitorEvent, callback: Callable[[Any], None]) -> None:
        """Call callback with the payload every time event fires."""
        with self._lock:
            self._subscribers[MonitorEvent(event)].append(callback)

    def unsubscribe(self, event: MonitorEvent, callback: Callable[[Any], None]) -> None:
        """Remove a callback; unknown callbacks are ignored."""
        with self._lock:
            callbacks = self._subscribers[MonitorEvent(event)]
            if callback in callbacks:
                callbacks.remove(callback)

    def emit(self, event: MonitorEvent, payload: Any) -> None:
        """Deliver payload to the subscribers of event."""
        with self._lock:
            callbacks = list(self._subscribers[event])
        for callback in callbacks:
            try:
                callback(payload)
            except Exception:
                logger.exception("Subscriber for %s failed", event.value)

    def monitor_path_analysis(
        self,
        batch: Sequence[Any],
        dest_folder: str,
        analyze: Callable[[Sequence[Any], str], Any],
    ) -> Monitored:
        """Run analyze(batch, dest_folder) through the cache and time it."""
        monitored = self._cached(
            OperationType.PATH_ANALYSIS,
            analysis_cache_key(batch, dest_folder),
            lambda: analyze(batch, dest_folder),
        )
        analysis = monitored.value
        with self._lock:
            strategy = getattr(analysis, "strategy", None)
            upload_type = getattr(analysis, "upload_type", None)
            if strategy is not None:
                self._strategies_used[getattr(strategy, "value", strategy)] += 1
            if upload_type is not None:
                self._upload_types[getattr(upload_type, "value", upload_type)] += 1
        return monitored

    def monitor_duplication_detection(
        self, path: str, detect: Callable[[str], Any]
    ) -> Monitored:
        """Run detect(path) through the cache and time it."""
        monitored = self._cached(
            OperationType.DUPLICATION_DETECTION,
            duplication_cache_key(path),
            lambda: detect(path),
        )
        if getattr(monitored.value, "has_duplication", False):
            with self._lock:
                self._duplications_found += 1
        return monitored

    def optimized_string_operation(self, operation: str, value: Any) -> Any:
        """Run a StringOptimizer operation and time it."""
        start = self.clock()
        memo_before = self.strings.memo_size
        result = self.strings.run(operation, value)
        duration_ms = (self.clock() - start) * 1000
        with self._lock:
            if (
                operation in {"segment_split", "normalize"}
                and self.strings.memo_size == memo_before
            ):
                self._optimized_string_ops += 1
        self.record_operation(OperationType.STRING_OPERATIONS, duration_ms)
        return result

    def start_path_resolution(
        self, operation_id: str, context: dict[str, Any] | None = None
    ) -> OperationTracker:
        """Begin timing one path resolution."""
        return OperationTracker(self, operation_id, context)

    def record_operation(
        self,
        operation_type: OperationType,
        duration_ms: float,
        *,
        error: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Add a duration to the stats and alert when it crosses the threshold."""
        threshold = self.thresholds_ms.get(operation_type.value)
        slow = threshold is not None and duration_ms > threshold
        with self._lock:
            stats = self._stats[operation_type]
            stats.record(duration_ms, slow=slow)
            if error:
                stats.errors += 1
            entry = {
                "type": operation_type.value,
                "duration_ms": round(duration_ms, 3),
                "timestamp": _now_iso(),
            }
            if self.detailed and details:
                entry["details"] = details
            self._history.append(entry)

        if slow:
            logger.debug(
                "Slow %s: %.3fms > %sms", operation_type.value, duration_ms, threshold
            )
            if self.alerts_enabled:
                self.emit(
                    MonitorEvent.PERFORMANCE_ALERT,
                    {
                        "type": operation_type.value,
                        "duration_ms": duration_ms,
                        "threshold_ms": threshold,
                        "details": details or {},
                    },
                )

    def get_metrics(self) -> dict[str, Any]:
        """Return per-operation stats plus cache counters."""
        with self._lock:
            return {
                "timestamp": _now_iso(),
                "operations": {t.value: s.as_dict() for t, s in self._stats.items()},
                "cache": {
                    "enabled": self.cache_enabled,
                    "size": self.cache.size,
                    "max_size": self.cache.max_size,
                    "hits": self.cache.hits,
                    "misses": self.cache.misses,
                    "evictions": self.cache.evictions,
                    "hit_rate": self.cache.hit_rate,
                },
                "duplications_found": self._duplications_found,
                "strategies_used": dict(self._strategies_used),
                "upload_types": dict(self._upload_types),
                "string_memo_size": self.strings.memo_size,
            }

    def get_benchmarks(self) -> dict[str, Any]:
        """Summarize each operation type as rates and latencies."""
        with self._lock:
            resolution = self._stats[OperationType.PATH_RESOLUTION]
            duplication = self._stats[OperationType.DUPLICATION_DETECTION]
            analysis = self._stats[OperationType.PATH_ANALYSIS]
            strings = self._stats[OperationType.STRING_OPERATIONS]
            return {
                "path_resolution": {
                    "average_ms": round(resolution.average_ms, 3),
                    "p95_ms": round(resolution.percentile(0.95), 3),
                    "p99_ms": round(resolution.percentile(0.99), 3),
                    "slow_operation_rate": _rate(
                        resolution.slow_operations, resolution.count
                    ),
                },
                "duplication_detection": {
                    "average_ms": round(duplication.average_ms, 3),
                    "cache_hit_rate": self.cache.hit_rate,
                    "duplications_found_rate": _rate(
                        self._duplications_found, duplication.count
                    ),
                },
                "path_analysis": {
                    "average_ms": round(analysis.average_ms, 3),
                    "strategy_distribution": dict(self._strategies_used),
                    "upload_type_distribution": dict(self._upload_types),
                },
                "string_operations": {
                    "average_ms": round(strings.average_ms, 3),
                    "optimization_rate": _rate(
                        self._optimized_string_ops, strings.count
                    ),
                },
            }

    def get_performance_history(self, limit: int | None = 100) -> list[dict[str, Any]]:
        """Return the most recent history entries, oldest first."""
        with self._lock:
            history = list(self._history)
        if limit is None:
            return history
        return history[-limit:] if limit > 0 else []

    def reset_metrics(self) -> None:
        """Zero every stat and counter; cached values are kept."""
        with self._lock:
            self._reset_counters()
            self._history.clear()
            self.cache.reset_stats()
        self.emit(MonitorEvent.METRICS_RESET, {"timestamp": _now_iso()})

    def clear_cache(self) -> None:
        """Drop every cached result and memoized string."""
        with self._lock:
            previous_size = self.cache.size
            self.cache.clear()
            self.strings.clear()
        logger.debug("Cleared %d cached results", previous_size)
        self.emit(MonitorEvent.CACHE_CLEARED, {"previous_size": previous_size})

    def sweep(self) -> int:
        """Drop expired cache entries."""
        removed = self.cache.sweep_expired()
        if removed:
            logger.debug("Swept %d expired cache entries", removed)
        return removed

    def emit_metrics_update(self) -> None:
        """Send the current metrics to METRICS_UPDATE subscribers."""
        self.emit(MonitorEvent.METRICS_UPDATE, self.get_metrics())

    def _cached(
        self, operation_type: OperationType, key: str, compute: Callable[[], Any]
    ) -> Monitored:
        start = self.clock()
        if self.cache_enabled:
            cached = self.cache.get(key)
            if cached is not MISSING:
                duration_ms = (self.clock() - start) * 1000
                self.record_operation(operation_type, duration_ms)
                return Monitored(cached, True, duration_ms)

        try:
            value = compute()
        except Exception:
            self.record_operation(
                operation_type, (self.clock() - start) * 1000, error=True
            )
            raise

        if self.cache_enabled:
            self.cache.put(key, value)
        duration_ms = (self.clock() - start) * 1000
        self.record_operation(operation_type, duration_ms)
        return Monitored(value, False, duration_ms)

    def _reset_counters(self) -> None:
        self._stats = {t: OperationStats() for t in OperationType}
        self._duplications_found = 0
        self._strategies_used: Counter[str] = Counter()
        self._upload_types: Counter[str] = Counter()
        self._optimized_string_ops = 0


def _rate(part: int, whole: int) -> float:
    return round(part / whole, 4) if whole else 0.0


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
