"""Logic for generating reports on a batch of upload path resolutions."""

import json
import time
from collections import Counter
from pathlib import Path
from typing import Any

from upload_path_resolver.resolution_result import ResolutionResult
from upload_path_resolver.sanitizer import split_segments


class ResolutionReport:
    """Collects and summarizes the results of upload path resolution."""

    def __init__(self, config_hash: str, destination_folder: str) -> None:
        """Initialize the report with metadata."""
        self.config_hash = config_hash
        self.destination_folder = destination_folder
        self.results: list[ResolutionResult] = []
        self.start_time = time.time()

    def add_result(self, result: ResolutionResult) -> None:
        """Add a single resolution result to the report."""
        self.results.append(result)

    def build(self) -> dict[str, Any]:
        """Return the report as a JSON-ready dictionary."""
        return {
            "meta": {
                "timestamp": time.time(),
                "duration": time.time() - self.start_time,
                "config_hash": self.config_hash,
                "destination_folder": self.destination_folder,
                "total_items": len(self.results),
            },
            "results": [
                {
                    "original_name": r.original_file.original_name
                    if r.original_file
                    else None,
                    "relative_path_hint": r.original_file.relative_path_hint
                    if r.original_file
                    else None,
                    "path": r.final_path,
                    "strategy": r.strategy.value,
                    "confidence": r.confidence,
                    "duplication_prevented": r.duplication_prevented,
                    "error": r.error,
                    "warnings": list(r.warnings),
                }
                for r in self.results
            ],
            "stats": self._compute_stats(),
        }

    def generate_report(self, path: str | Path) -> None:
        """Write the summary report to a JSON file."""
        Path(path).write_text(json.dumps(self.build(), indent=2), encoding="utf-8")

    def _compute_stats(self) -> dict[str, Any]:
        strategy_counts = Counter(r.strategy.value for r in self.results)
        duplication_counts = Counter(
            r.metadata.get("duplication_type", "none") for r in self.results
        )
        error_counts = Counter(
            r.error_info.category.value for r in self.results if r.error_info
        )
        folder_counts: Counter[str] = Counter()
        dest_depth = len(split_segments(self.destination_folder))
        for r in self.results:
            # Top-level folder under the destination
            parts = r.final_path.split("/")
            if len(parts) > dest_depth + 1:
                folder_counts[parts[dest_depth]] += 1

        total_items = len(self.results)
        prevented = sum(1 for r in self.results if r.duplication_prevented)
        errors = sum(1 for r in self.results if r.error)

        return {
            "strategy_counts": dict(strategy_counts),
            "duplication_counts": dict(duplication_counts),
            "error_counts": dict(error_counts),
            "folder_counts": dict(folder_counts),
            "metrics": {
                "duplications_prevented": prevented,
                "errors": errors,
                "error_rate": (errors / total_items) if total_items > 0 else 0,
                "average_confidence": (
                    sum(r.confidence for r in self.results) / total_items
                )
                if total_items > 0
                else 0,
            },
        }
