"""Command-line front end for resolving upload paths."""

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

import yaml

from upload_path_resolver.compute_cache_key import compute_cache_key
from upload_path_resolver.load_config import ConfigError, load_config
from upload_path_resolver.resolution_report import ResolutionReport
from upload_path_resolver.sanitizer import split_segments
from upload_path_resolver.upload_file import UploadFile
from upload_path_resolver.upload_path_resolver import UploadPathResolver

logger = logging.getLogger(__name__)

EXIT_BAD_INPUT = 2


class BatchFileError(ValueError):
    """A batch file could not be turned into upload files."""


def load_batch(path: Path) -> list[UploadFile]:
    """Load a YAML or JSON list of upload mappings."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Could not read batch file {path}: {exc}"
        raise BatchFileError(msg) from exc

    if not isinstance(data, list) or not all(isinstance(d, dict) for d in data):
        msg = f"Batch file {path} must contain a list of mappings"
        raise BatchFileError(msg)
    return [UploadFile.from_mapping(d) for d in data]


def files_from_hints(hints: Sequence[str]) -> list[UploadFile]:
    """Turn relative paths into upload files named after their basename."""
    files = []
    for hint in hints:
        segments = split_segments(hint)
        name = segments[-1] if segments else hint
        files.append(UploadFile(name, hint))
    return files


def run_resolution(args: argparse.Namespace) -> int:
    """Resolve the requested files and print one JSON object per line."""
    try:
        config = load_config(args.config)
        files = load_batch(args.batch) if args.batch else []
    except (ConfigError, BatchFileError, OSError, yaml.YAMLError) as exc:
        logger.error("%s", exc)
        return EXIT_BAD_INPUT

    files.extend(files_from_hints(args.paths))
    if args.no_hints:
        files = [UploadFile(f.original_name) for f in files]
    if not files:
        logger.error("No files given; pass PATH arguments or --batch")
        return EXIT_BAD_INPUT

    resolver = UploadPathResolver(config)
    results = resolver.resolve_paths_batch(files, args.dest)

    for result in results:
        print(json.dumps(result.as_dict(), sort_keys=True))

    if args.report:
        report = ResolutionReport(compute_cache_key("config", config), args.dest)
        for result in results:
            report.add_result(result)
        report.generate_report(args.report)
        logger.info("Wrote report to %s", args.report)

    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, configure logging and run the resolution."""
    ap = argparse.ArgumentParser(
        prog="upload-paths",
        description="Resolve upload destinations without duplicated folder segments.",
    )
    ap.add_argument("dest", help="Destination folder the files are uploaded into")
    ap.add_argument(
        "paths",
        nargs="*",
        default=[],
        help="Relative path hints; each file is named after the hint's basename",
    )
    ap.add_argument(
        "--batch",
        type=Path,
        help="YAML or JSON list of {original_name, relative_path_hint} mappings",
    )
    ap.add_argument(
        "--no-hints",
        action="store_true",
        help="Ignore relative path hints and resolve every file by basename",
    )
    ap.add_argument("--config", help="Path to configuration file")
    ap.add_argument("--report", type=Path, help="Write a JSON summary to this file")
    ap.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return run_resolution(args)


if __name__ == "__main__":
    raise SystemExit(main())
