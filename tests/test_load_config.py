"""Tests for configuration loading and merging."""

from pathlib import Path

import pytest

from upload_path_resolver.deep_merge import deep_merge
from upload_path_resolver.load_config import DEFAULT_CONFIG, ConfigError, load_config


def test_load_config_defaults() -> None:
    """Verify a missing path yields an independent copy of the defaults."""
    config = load_config(None)
    assert config == DEFAULT_CONFIG
    config["cache"]["max_size"] = 1
    assert DEFAULT_CONFIG["cache"]["max_size"] == 1000  # noqa: PLR2004


def test_load_config_merges_yaml(tmp_path: Path) -> None:
    """Verify nested values override while siblings keep their defaults."""
    path = tmp_path / "config.yaml"
    path.write_text(
        "cache:\n  ttl_ms: 5000\nalerts:\n  thresholds_ms:\n    path_analysis: 20\n",
        encoding="utf-8",
    )
    config = load_config(str(path))
    assert config["cache"]["ttl_ms"] == 5000  # noqa: PLR2004
    assert config["cache"]["max_size"] == 1000  # noqa: PLR2004
    assert config["alerts"]["thresholds_ms"]["path_analysis"] == 20  # noqa: PLR2004
    assert config["alerts"]["thresholds_ms"]["path_resolution"] == 10  # noqa: PLR2004


def test_load_config_missing_file(tmp_path: Path) -> None:
    """Verify a path that does not exist falls back to defaults."""
    assert load_config(tmp_path / "nope.yaml") == DEFAULT_CONFIG


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    """Verify a YAML list is refused."""
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_deep_merge_does_not_mutate() -> None:
    """Verify both inputs are left untouched."""
    base = {"a": {"b": 1, "c": [1]}}
    update = {"a": {"c": [2]}, "d": 3}
    merged = deep_merge(base, update)
    assert merged == {"a": {"b": 1, "c": [2]}, "d": 3}
    assert base == {"a": {"b": 1, "c": [1]}}
    merged["a"]["c"].append(9)
    assert update == {"a": {"c": [2]}, "d": 3}
