"""Tests for the command-line front end."""

import json
from pathlib import Path

import pytest

from upload_path_resolver.cli import files_from_hints, load_batch, main


def _lines(capsys: pytest.CaptureFixture[str]) -> list[dict]:
    out = capsys.readouterr().out
    return [json.loads(line) for line in out.splitlines() if line.strip()]


def test_files_from_hints() -> None:
    """Verify each hint becomes a file named after its basename."""
    files = files_from_hints(["site/css/a.css", "b.txt"])
    assert files[0].original_name == "a.css"
    assert files[0].relative_path_hint == "site/css/a.css"
    assert files[1].original_name == "b.txt"


def test_main_prints_one_result_per_file(capsys: pytest.CaptureFixture[str]) -> None:
    """Verify results are printed as JSON lines."""
    code = main(["documents", "documents/rapport.pdf"])
    assert code == 0
    results = _lines(capsys)
    assert len(results) == 1
    assert results[0]["final_path"] == "documents/rapport.pdf"
    assert results[0]["duplication_prevented"] is True


def test_main_no_hints(capsys: pytest.CaptureFixture[str]) -> None:
    """Verify --no-hints resolves every file by basename."""
    code = main(
        ["projects", "site/css/a.css", "site/js/b.js", "site/img/c.png", "--no-hints"]
    )
    assert code == 0
    paths = [r["final_path"] for r in _lines(capsys)]
    assert paths == ["projects/a.css", "projects/b.js", "projects/c.png"]


def test_main_batch_and_report(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Verify a batch file is resolved and a report is written."""
    batch = tmp_path / "batch.yaml"
    batch.write_text(
        "- originalname: a.css\n  webkitRelativePath: site/css/a.css\n"
        "- originalname: b.js\n  webkitRelativePath: site/js/b.js\n"
        "- original_name: c.png\n  relative_path_hint: site/img/c.png\n",
        encoding="utf-8",
    )
    report = tmp_path / "report.json"
    code = main(["projects", "--batch", str(batch), "--report", str(report)])
    assert code == 0

    paths = [r["final_path"] for r in _lines(capsys)]
    assert paths == [
        "projects/site/css/a.css",
        "projects/site/js/b.js",
        "projects/site/img/c.png",
    ]
    content = json.loads(report.read_text(encoding="utf-8"))
    assert content["meta"]["total_items"] == 3  # noqa: PLR2004
    assert content["meta"]["config_hash"].startswith("config:")


def test_main_rejects_bad_batch(tmp_path: Path) -> None:
    """Verify a batch that is not a list of mappings exits with status 2."""
    batch = tmp_path / "batch.json"
    batch.write_text('{"originalname": "a.txt"}', encoding="utf-8")
    assert main(["docs", "--batch", str(batch)]) == 2  # noqa: PLR2004


def test_main_requires_files() -> None:
    """Verify running without files exits with status 2."""
    assert main(["docs"]) == 2  # noqa: PLR2004


def test_main_rejects_bad_config(tmp_path: Path) -> None:
    """Verify a config file that is not a mapping exits with status 2."""
    config = tmp_path / "config.yaml"
    config.write_text("- nope\n", encoding="utf-8")
    assert main(["docs", "a.txt", "--config", str(config)]) == 2  # noqa: PLR2004


def test_load_batch_missing_file(tmp_path: Path) -> None:
    """Verify an unreadable batch file raises a clear error."""
    with pytest.raises(ValueError, match="Could not read batch file"):
        load_batch(tmp_path / "missing.yaml")
