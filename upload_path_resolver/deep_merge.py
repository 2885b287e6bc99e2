"""Logic for deep merging configuration dictionaries."""

import copy
from typing import Any


def deep_merge(base: dict[str, Any], update: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries without mutating either of them.

    - Mappings are merged recursively.
    - Scalars and lists in 'update' replace the ones in 'base'.
    """
    result = copy.deepcopy(base)
    for key, value in update.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result
