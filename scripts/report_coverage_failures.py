"""Gate upload_path_resolver coverage per module using coverage.py JSON output.

Modules that decide whether a path is safe carry a stricter floor than the
rest of the package.

Usage:
    python report_coverage_failures.py --file coverage.json --threshold 80
"""

from __future__ import annotations

import argparse
import json
import pathlib
import sys
from dataclasses import dataclass
from typing import Any

PACKAGE = "upload_path_resolver"

STRICT_THRESHOLD = 90.0
STRICT_MODULES = frozenset(
    {
        "sanitizer.py",
        "path_construction_strategy.py",
        "duplication_detector.py",
        "error_handler.py",
        "upload_path_resolver.py",
    }
)

RED = "\033[31m"
RESET = "\033[0m"


@dataclass(frozen=True)
class ModuleCoverage:
    """Line and branch coverage for one package module."""

    module: str
    lines: float | None
    branches: float | None

    def below(self, floor: float) -> list[str]:
        """Return the names of the metrics under floor."""
        return [
            name
            for name, pct in (("lines", self.lines), ("branches", self.branches))
            if pct is not None and pct < floor
        ]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--file", required=True, type=pathlib.Path)
    parser.add_argument(
        "--threshold",
        type=float,
        default=80.0,
        help="Floor for modules without a stricter one",
    )
    return parser.parse_args()


def module_name(path: str) -> str | None:
    """Return the module file name when path belongs to the package."""
    parts = path.replace("\\", "/").split("/")
    if len(parts) < 2 or parts[-2] != PACKAGE:  # noqa: PLR2004
        return None
    return parts[-1]


def _pct(covered: float | None, total: float | None) -> float | None:
    if covered is None or not total:
        return None
    return covered / total * 100


def collect(data: dict[str, Any]) -> list[ModuleCoverage]:
    """Extract per-module coverage for the package from coverage JSON."""
    modules = []
    for path, info in data.get("files", {}).items():
        name = module_name(path)
        if name is None:
            continue
        summary = info.get("summary", {})
        modules.append(
            ModuleCoverage(
                module=name,
                lines=_pct(summary.get("covered_lines"), summary.get("num_statements")),
                branches=_pct(
                    summary.get("covered_branches"), summary.get("num_branches")
                ),
            )
        )
    return sorted(modules, key=lambda m: m.module)


def floor_for(module: str, threshold: float) -> float:
    """Return the coverage floor that applies to module."""
    if module in STRICT_MODULES:
        return max(threshold, STRICT_THRESHOLD)
    return threshold


def _show(pct: float | None, *, failed: bool) -> str:
    if pct is None:
        return "n/a"
    text = f"{pct:.1f}%"
    return f"{RED}{text}{RESET}" if failed else text


def main() -> int:
    """Print modules under their floor; return 1 if any are."""
    args = parse_args()
    try:
        data = json.loads(args.file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        print(f"  could not read {args.file}: {exc}")
        return 1

    modules = collect(data)
    if not modules:
        print(f"  no {PACKAGE} modules in {args.file}")
        return 1

    failures = 0
    for cov in modules:
        floor = floor_for(cov.module, args.threshold)
        failed = cov.below(floor)
        if not failed:
            continue
        failures += 1
        print(
            f"  - {cov.module} (floor {floor:.0f}%): "
            f"lines {_show(cov.lines, failed='lines' in failed)}, "
            f"branches {_show(cov.branches, failed='branches' in failed)}"
        )

    if failures:
        return 1
    print(f"  all {len(modules)} modules meet their floor")
    return 0


if __name__ == "__main__":
    sys.exit(main())
