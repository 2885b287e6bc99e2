"""Tests for the path analysis engine module."""

from upload_path_resolver.analysis_result import Strategy, UploadType
from upload_path_resolver.path_analysis_engine import PathAnalysisEngine
from upload_path_resolver.upload_file import UploadFile


def test_single_file_without_hint() -> None:
    """Verify a plain single file is an individual upload."""
    result = PathAnalysisEngine().analyze_upload_context([UploadFile("a.txt")], "docs")
    assert result.upload_type == UploadType.INDIVIDUAL
    assert result.strategy == Strategy.BASENAME
    assert result.confidence == 1.0


def test_empty_batch() -> None:
    """Verify an empty batch defaults to individual."""
    result = PathAnalysisEngine().analyze_upload_context([], "docs")
    assert result.strategy == Strategy.BASENAME
    assert result.confidence == 1.0


def test_single_file_hint_equal_to_name() -> None:
    """Verify a hint that is just the name is ignored."""
    result = PathAnalysisEngine().analyze_upload_context(
        [UploadFile("a.txt", "a.txt")], "docs"
    )
    assert result.strategy == Strategy.BASENAME
    assert result.confidence == 1.0


def test_single_file_duplicating_destination() -> None:
    """Verify a hint repeating the destination is flagged."""
    result = PathAnalysisEngine().analyze_upload_context(
        [UploadFile("rapport.pdf", "documents/rapport.pdf")], "documents"
    )
    assert result.strategy == Strategy.BASENAME
    assert result.confidence == 0.9  # noqa: PLR2004
    assert result.warnings


def test_single_file_invalid_hint() -> None:
    """Verify temp-like hints fall back to basename."""
    result = PathAnalysisEngine().analyze_upload_context(
        [UploadFile("a.txt", "tmp_123/a.txt")], "docs"
    )
    assert result.strategy == Strategy.BASENAME
    assert result.confidence == 0.8  # noqa: PLR2004
    assert "Invalid relative path hint detected" in result.warnings


def test_single_file_realistic_folder() -> None:
    """Verify a deep, realistic hint is treated as a folder upload."""
    result = PathAnalysisEngine().analyze_upload_context(
        [UploadFile("Button.tsx", "src/components/Button.tsx")], "app"
    )
    assert result.upload_type == UploadType.FOLDER
    assert result.strategy == Strategy.WEBKIT_PATH
    assert result.confidence == 0.9  # noqa: PLR2004


def test_single_file_shallow_hint_stays_individual() -> None:
    """Verify a two-segment hint with short names stays below the cutoff."""
    result = PathAnalysisEngine().analyze_upload_context(
        [UploadFile("a.txt", "ab/a.txt")], "docs"
    )
    assert result.strategy == Strategy.BASENAME
    assert result.confidence == 0.5  # noqa: PLR2004


def test_folder_batch_above_cutoff() -> None:
    """Verify depth-3 batches with a common root become folder uploads."""
    batch = [
        UploadFile("a.css", "site/css/a.css"),
        UploadFile("b.js", "site/js/b.js"),
        UploadFile("c.png", "site/img/c.png"),
    ]
    result = PathAnalysisEngine().analyze_upload_context(batch, "projects")
    assert result.upload_type == UploadType.FOLDER
    assert result.strategy == Strategy.WEBKIT_PATH
    assert result.confidence > 0.8  # noqa: PLR2004
    assert "site" in result.reasoning


def test_folder_batch_at_cutoff_stays_basename() -> None:
    """Verify depth-2 batches reach exactly 0.8 and stay individual."""
    batch = [UploadFile("a.txt", "site/a.txt"), UploadFile("b.txt", "site/b.txt")]
    result = PathAnalysisEngine().analyze_upload_context(batch, "projects")
    assert result.confidence == 0.8  # noqa: PLR2004
    assert result.strategy == Strategy.BASENAME
    assert result.upload_type == UploadType.INDIVIDUAL


def test_large_folder_batch_bonus() -> None:
    """Verify batches of more than three files get the size bonus."""
    batch = [UploadFile(f"{i}.txt", f"site/{i}.txt") for i in range(4)]
    result = PathAnalysisEngine().analyze_upload_context(batch, "projects")
    assert result.confidence == 0.85  # noqa: PLR2004
    assert result.strategy == Strategy.WEBKIT_PATH


def test_mixed_batch_uses_basename() -> None:
    """Verify hints without a common root are treated as mixed."""
    batch = [UploadFile("a.txt", "one/a.txt"), UploadFile("b.txt", "two/b.txt")]
    result = PathAnalysisEngine().analyze_upload_context(batch, "projects")
    assert result.strategy == Strategy.BASENAME
    assert result.confidence == 0.7  # noqa: PLR2004
    assert any("Mixed" in w for w in result.warnings)


def test_batch_with_invalid_hints() -> None:
    """Verify batches whose hints are all invalid are individual uploads."""
    batch = [UploadFile("a.txt", "../a.txt"), UploadFile("b.txt", "x\\b.txt")]
    result = PathAnalysisEngine().analyze_upload_context(batch, "projects")
    assert result.strategy == Strategy.BASENAME
    assert result.confidence == 1.0
    assert result.warnings


def test_batch_with_few_hints() -> None:
    """Verify batches where most files lack hints are individual uploads."""
    batch = [
        UploadFile("a.txt", "site/a.txt"),
        UploadFile("b.txt"),
        UploadFile("c.txt"),
    ]
    result = PathAnalysisEngine().analyze_upload_context(batch, "projects")
    assert result.strategy == Strategy.BASENAME
    assert result.confidence == 0.9  # noqa: PLR2004


def test_invalid_inputs_never_raise() -> None:
    """Verify bad input produces a low-confidence result."""
    engine = PathAnalysisEngine()
    for batch, dest in [
        ([UploadFile("a.txt")], ""),
        ("not-a-batch", "docs"),
        ([None], "docs"),
        ([UploadFile("")], "docs"),
    ]:
        result = engine.analyze_upload_context(batch, dest)  # type: ignore[arg-type]
        assert result.strategy == Strategy.BASENAME
        assert result.confidence == 0.1  # noqa: PLR2004
        assert result.warnings[0].startswith("Analysis error:")


def test_is_valid_hint() -> None:
    """Verify hint validity rules."""
    engine = PathAnalysisEngine()
    assert engine.is_valid_hint("site/css/a.css")
    assert not engine.is_valid_hint("")
    assert not engine.is_valid_hint("a/../b")
    assert not engine.is_valid_hint("d41d8cd98f00b204e9800998ecf8427e/a.txt")
    assert not engine.is_valid_hint("temp_upload/a.txt")
