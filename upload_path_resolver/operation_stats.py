"""Running timing statistics for one kind of monitored operation."""

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Any

RECENT_SAMPLES = 1000


@dataclass
class OperationStats:
    """Count, total, extremes and recent durations for one operation type."""

    count: int = 0
    total_ms: float = 0.0
    min_ms: float = math.inf
    max_ms: float = 0.0
    slow_operations: int = 0
    errors: int = 0
    recent: deque[float] = field(default_factory=lambda: deque(maxlen=RECENT_SAMPLES))

    def record(self, duration_ms: float, *, slow: bool = False) -> None:
        """Add one measured duration."""
        self.count += 1
        self.total_ms += duration_ms
        self.min_ms = min(self.min_ms, duration_ms)
        self.max_ms = max(self.max_ms, duration_ms)
        self.recent.append(duration_ms)
        if slow:
            self.slow_operations += 1

    @property
    def average_ms(self) -> float:
        """Mean duration over every recorded operation."""
        return self.total_ms / self.count if self.count else 0.0

    def percentile(self, p: float) -> float:
        """Return the p-th percentile (0..1) of the recent durations."""
        if not self.recent:
            return 0.0
        ordered = sorted(self.recent)
        index = min(len(ordered) - 1, math.floor(len(ordered) * p))
        return ordered[index]

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-ready summary."""
        return {
            "count": self.count,
            "total_ms": round(self.total_ms, 3),
            "average_ms": round(self.average_ms, 3),
            "min_ms": round(self.min_ms, 3) if self.count else 0.0,
            "max_ms": round(self.max_ms, 3),
            "p95_ms": round(self.percentile(0.95), 3),
            "p99_ms": round(self.percentile(0.99), 3),
            "slow_operations": self.slow_operations,
            "errors": self.errors,
        }
