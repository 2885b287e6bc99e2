"""Memoized string helpers used on hot resolution paths."""

import hashlib
from collections.abc import Callable
from typing import Any

from upload_path_resolver.sanitizer import split_segments


class StringOptimizer:
    """Caches segment splitting and separator normalization by input string."""

    def __init__(self) -> None:
        """Initialize empty memo maps."""
        self._segments: dict[str, tuple[str, ...]] = {}
        self._normalized: dict[str, str] = {}
        self._operations: dict[str, Callable[[Any], Any]] = {
            "segment_split": self.segment_split,
            "normalize": self.normalize,
            "path_join": self.path_join,
            "hash": self.hash,
        }

    @property
    def operations(self) -> tuple[str, ...]:
        """Names accepted by run()."""
        return tuple(self._operations)

    @property
    def memo_size(self) -> int:
        """Number of memoized inputs across both maps."""
        return len(self._segments) + len(self._normalized)

    def run(self, operation: str, value: Any) -> Any:
        """Dispatch to a named operation; unknown names raise ValueError."""
        func = self._operations.get(operation)
        if func is None:
            msg = f"Unknown string operation: {operation}"
            raise ValueError(msg)
        return func(value)

    def segment_split(self, path: str) -> tuple[str, ...]:
        """Split a path into its non-empty segments."""
        cached = self._segments.get(path)
        if cached is None:
            cached = tuple(split_segments(path))
            self._segments[path] = cached
        return cached

    def normalize(self, path: str) -> str:
        """Use '/' separators and collapse repeated separators."""
        cached = self._normalized.get(path)
        if cached is None:
            cached = "/".join(split_segments(path))
            self._normalized[path] = cached
        return cached

    def path_join(self, parts: Any) -> str:
        """Join segments with '/', skipping empty ones."""
        return "/".join(str(p) for p in parts if p)

    def hash(self, value: str) -> str:
        """Return a short hex digest of the value."""
        return hashlib.blake2b(str(value).encode("utf-8"), digest_size=8).hexdigest()

    def clear(self) -> None:
        """Forget every memoized result."""
        self._segments.clear()
        self._normalized.clear()
