"""Tests for the ResolutionReport logic."""

import json
from pathlib import Path

from upload_path_resolver.resolution_report import ResolutionReport
from upload_path_resolver.upload_file import UploadFile
from upload_path_resolver.upload_path_resolver import UploadPathResolver


def test_resolution_report_generation(tmp_path: Path) -> None:
    """Verify that the report summarizes strategies, folders and errors."""
    resolver = UploadPathResolver()
    batch = [
        UploadFile("a.css", "site/css/a.css"),
        UploadFile("b.js", "site/js/b.js"),
        UploadFile("c.png", "site/img/c.png"),
    ]
    report = ResolutionReport("hash123", "projects")
    for result in resolver.resolve_paths_batch(batch, "projects"):
        report.add_result(result)
    report.add_result(resolver.resolve_path(None, "projects"))

    output_file = tmp_path / "report.json"
    report.generate_report(str(output_file))

    assert output_file.exists()
    content = json.loads(output_file.read_text(encoding="utf-8"))

    assert content["meta"]["config_hash"] == "hash123"
    assert content["meta"]["total_items"] == 4  # noqa: PLR2004
    assert len(content["results"]) == 4  # noqa: PLR2004
    assert content["results"][0]["path"] == "projects/site/css/a.css"
    assert content["results"][3]["original_name"] is None

    stats = content["stats"]
    assert stats["strategy_counts"] == {"webkit_path": 3, "custom": 1}
    assert stats["folder_counts"] == {"site": 3}
    assert stats["error_counts"] == {"validation": 1}
    assert stats["metrics"]["errors"] == 1
    assert stats["metrics"]["error_rate"] == 0.25  # noqa: PLR2004


def test_empty_report() -> None:
    """Verify an empty report has zeroed metrics."""
    stats = ResolutionReport("h", "docs").build()["stats"]
    assert stats["metrics"]["error_rate"] == 0
    assert stats["metrics"]["average_confidence"] == 0
