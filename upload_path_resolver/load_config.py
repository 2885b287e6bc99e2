"""Logic for loading and merging configuration files."""

import copy
from pathlib import Path
from typing import Any

import yaml

from upload_path_resolver.deep_merge import deep_merge

DEFAULT_CONFIG: dict[str, Any] = {
    "cache": {
        "enabled": True,
        "max_size": 1000,
        "ttl_ms": 300_000,
    },
    "alerts": {
        "enabled": True,
        "thresholds_ms": {
            "path_resolution": 10,
            "duplication_detection": 5,
            "path_analysis": 8,
            "string_operations": 2,
        },
    },
    "metrics": {
        "update_interval_ms": 30_000,
        "history_size": 1000,
        "detailed": True,
    },
    "errors": {
        "max_retries": 3,
        "retry_delay_ms": 1000,
        "fallback_directory": "uploads",
    },
    "logging": {
        "detailed": False,
    },
}


class ConfigError(ValueError):
    """The configuration file is not a YAML mapping."""


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration from a YAML file and merge it with defaults.

    A missing path (or a path that does not exist) yields a copy of the
    defaults.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if path:
        p = Path(path)
        if p.exists():
            user_config = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            if not isinstance(user_config, dict):
                msg = f"Configuration in {p} must be a mapping"
                raise ConfigError(msg)
            config = deep_merge(config, user_config)
    return config
