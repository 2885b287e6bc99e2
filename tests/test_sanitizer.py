"""Tests for the sanitizer module."""

from upload_path_resolver.sanitizer import (
    UNNAMED_FILE,
    Sanitizer,
    is_absolute,
    split_segments,
)


def test_split_segments_handles_both_separators() -> None:
    """Verify that both separators split and empty segments are dropped."""
    assert split_segments("a//b\\c/") == ["a", "b", "c"]
    assert split_segments("") == []


def test_is_absolute() -> None:
    """Verify POSIX, UNC and drive-letter paths are absolute."""
    assert is_absolute("/etc/passwd")
    assert is_absolute("\\\\server\\share")
    assert is_absolute("C:stuff")
    assert not is_absolute("docs/a.txt")


def test_sanitize_segment() -> None:
    """Verify forbidden characters, edge dots and reserved names are handled."""
    s = Sanitizer()
    assert s.sanitize_segment('re<po>rt"s') == "reports"
    assert s.sanitize_segment(" ..hidden. ") == "hidden"
    assert s.sanitize_segment("con") == "file_con"
    assert s.sanitize_segment("...") == UNNAMED_FILE


def test_sanitize_path_joins_clean_segments() -> None:
    """Verify separators are normalized and blank segments skipped."""
    s = Sanitizer()
    assert s.sanitize_path("uploads\\docs// /a?.txt") == "uploads/docs/a.txt"
    assert s.sanitize_path("") == ""


def test_sanitize_filename() -> None:
    """Verify filename cleanup, reserved stems and the empty fallback."""
    s = Sanitizer()
    assert s.sanitize_filename("my:<file>.txt") == "my_file_.txt"
    assert s.sanitize_filename("NUL.txt") == "file_NUL.txt"
    assert s.sanitize_filename("..") == UNNAMED_FILE
    assert s.sanitize_filename("") == UNNAMED_FILE


def test_sanitize_filename_truncates_keeping_extension() -> None:
    """Verify long names are cut to the limit without losing the extension."""
    s = Sanitizer()
    name = "x" * 150 + ".pdf"
    clean = s.sanitize_filename(name)
    assert len(clean) == s.max_filename_length
    assert clean.endswith(".pdf")


def test_is_valid_segment() -> None:
    """Verify segment validation."""
    s = Sanitizer()
    assert s.is_valid_segment("docs")
    assert s.is_valid_segment("report..v2.pdf")
    assert not s.is_valid_segment("..")
    assert not s.is_valid_segment(" ")
    assert not s.is_valid_segment("a|b")
    assert not s.is_valid_segment("LPT1")
