"""Tests for the duplication detector module."""

from upload_path_resolver.duplication_detector import DuplicationDetector
from upload_path_resolver.duplication_result import DuplicationType


def test_consecutive_runs_collapse() -> None:
    """Verify that a run of equal segments collapses to one."""
    result = DuplicationDetector().detect_consecutive_duplicates(
        "docs/docs/docs/a.txt"
    )
    assert result.has_duplication
    assert result.suggested_path == "docs/a.txt"
    assert result.duplicated_segments == ("docs", "docs")


def test_consecutive_normalizes_separators() -> None:
    """Verify backslash separators are treated like slashes."""
    result = DuplicationDetector().detect_consecutive_duplicates("a\\a\\b.txt")
    assert result.has_duplication
    assert result.suggested_path == "a/b.txt"


def test_no_consecutive_duplicates() -> None:
    """Verify a clean path is reported unchanged."""
    result = DuplicationDetector().detect_consecutive_duplicates("a/b/a/c.txt")
    assert not result.has_duplication
    assert result.suggested_path == "a/b/a/c.txt"


def test_user_pattern_duplication() -> None:
    """Verify a repeated segment pair is removed once."""
    result = DuplicationDetector().detect_user_pattern_duplication(
        "users/john/users/john/f.txt"
    )
    assert result.has_user_duplication
    assert result.duplicated_pattern == "users/john"
    assert result.suggested_path == "users/john/f.txt"


def test_user_pattern_needs_four_segments() -> None:
    """Verify short paths are never reported as user patterns."""
    result = DuplicationDetector().detect_user_pattern_duplication("a/b/a")
    assert not result.has_user_duplication


def test_analyze_reports_consecutive_first() -> None:
    """Verify consecutive duplicates take priority over user patterns."""
    result = DuplicationDetector().analyze_path_duplication(
        "documents/documents/rapport.pdf"
    )
    assert result.duplication_type == DuplicationType.CONSECUTIVE
    assert result.suggested_path == "documents/rapport.pdf"
    assert result.confidence == 0.95  # noqa: PLR2004
    assert result.duplicated_segments == ("documents",)


def test_analyze_reports_user_pattern() -> None:
    """Verify the user pattern detector runs when no consecutive repeat exists."""
    result = DuplicationDetector().analyze_path_duplication("a/b/c/a/b/d.txt")
    assert result.duplication_type == DuplicationType.USER_PATTERN
    assert result.suggested_path == "a/b/c/d.txt"
    assert result.confidence == 0.85  # noqa: PLR2004


def test_analyze_clean_path() -> None:
    """Verify a clean path yields no duplication with full confidence."""
    result = DuplicationDetector().analyze_path_duplication("projects/site/a.css")
    assert result.duplication_type == DuplicationType.NONE
    assert not result.has_duplication
    assert result.suggested_path == "projects/site/a.css"
    assert result.confidence == 1.0


def test_analyze_invalid_input_echoes_path() -> None:
    """Verify invalid input yields an error result instead of raising."""
    detector = DuplicationDetector()

    empty = detector.analyze_path_duplication("")
    assert empty.duplication_type == DuplicationType.ERROR
    assert empty.confidence == 0.0
    assert empty.error

    long_path = "a/" * 200
    too_long = detector.analyze_path_duplication(long_path)
    assert too_long.duplication_type == DuplicationType.ERROR
    assert too_long.suggested_path == long_path
