"""Tests for the path construction strategy module."""

import pytest

from upload_path_resolver.errors import PathConstructionError, PathSecurityError
from upload_path_resolver.path_construction_strategy import PathConstructionStrategy
from upload_path_resolver.upload_file import UploadFile


def test_basename_ignores_hint() -> None:
    """Verify basename places the file directly under the destination."""
    strategy = PathConstructionStrategy()
    file = UploadFile("rapport.pdf", "documents/rapport.pdf")
    assert strategy.construct_basename("documents", file) == "documents/rapport.pdf"


def test_basename_sanitizes_parts() -> None:
    """Verify destination and filename are both sanitized."""
    strategy = PathConstructionStrategy()
    file = UploadFile("some/dir/bad:name?.txt")
    assert (
        strategy.construct_basename("/uploads\\2024/", file)
        == "uploads/2024/bad_name_.txt"
    )


def test_basename_rejects_unusable_names() -> None:
    """Verify missing or unsanitizable names raise instead of producing blanks."""
    strategy = PathConstructionStrategy()
    with pytest.raises(PathConstructionError):
        strategy.construct_basename("docs", UploadFile(""))
    with pytest.raises(PathConstructionError):
        strategy.construct_basename("docs", UploadFile("..."))
    with pytest.raises(PathConstructionError):
        strategy.construct_basename("docs", None)


def test_basename_rejects_empty_destination() -> None:
    """Verify a destination that sanitizes to nothing raises."""
    strategy = PathConstructionStrategy()
    with pytest.raises(PathConstructionError):
        strategy.construct_basename("//", UploadFile("a.txt"))


def test_webkit_path_keeps_hint() -> None:
    """Verify the full hint is kept under the destination."""
    strategy = PathConstructionStrategy()
    file = UploadFile("a.css", "site/css/a.css")
    assert strategy.construct_webkit_path("projects", file) == "projects/site/css/a.css"


def test_webkit_path_requires_hint() -> None:
    """Verify a missing hint raises a construction error."""
    strategy = PathConstructionStrategy()
    with pytest.raises(PathConstructionError):
        strategy.construct_webkit_path("projects", UploadFile("a.css", "  "))


@pytest.mark.parametrize(
    "hint",
    ["../../etc/passwd", "./a.txt", "/etc/passwd", "C:\\Windows\\a.txt", "a/" * 140],
)
def test_webkit_path_rejects_hostile_hints(hint: str) -> None:
    """Verify traversal, absolute and oversized hints raise security errors."""
    strategy = PathConstructionStrategy()
    with pytest.raises(PathSecurityError):
        strategy.construct_webkit_path("projects", UploadFile("a.txt", hint))


def test_smart_path_drops_leading_duplicate() -> None:
    """Verify a hint starting with the destination's name loses that segment."""
    strategy = PathConstructionStrategy()
    file = UploadFile("rapport.pdf", "documents/2024/rapport.pdf")
    assert (
        strategy.construct_smart_path("users/documents", file)
        == "users/documents/2024/rapport.pdf"
    )


def test_smart_path_delegates_to_webkit() -> None:
    """Verify a hint without a leading duplicate is used as-is."""
    strategy = PathConstructionStrategy()
    file = UploadFile("a.txt", "other/a.txt")
    assert strategy.construct_smart_path("docs", file) == "docs/other/a.txt"


def test_smart_path_empty_remainder_raises() -> None:
    """Verify a hint that is only the destination's name raises."""
    strategy = PathConstructionStrategy()
    with pytest.raises(PathConstructionError):
        strategy.construct_smart_path("docs", UploadFile("docs", "docs"))


def test_is_valid_path() -> None:
    """Verify the shared path validation."""
    strategy = PathConstructionStrategy()
    assert strategy.is_valid_path("docs/report..v2.pdf")
    assert not strategy.is_valid_path("docs/../etc")
    assert not strategy.is_valid_path("/docs/a.txt")
    assert not strategy.is_valid_path("docs\\a.txt")
    assert not strategy.is_valid_path("docs//a.txt")
    assert not strategy.is_valid_path("x" * 261)
    assert not strategy.is_valid_path("")
