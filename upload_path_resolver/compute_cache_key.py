"""Logic for computing stable cache keys from resolver inputs."""

import hashlib
import json
from collections.abc import Sequence
from typing import Any

DIGEST_SIZE = 8


def compute_cache_key(kind: str, payload: Any) -> str:
    """Compute a stable '<kind>:<digest>' key for a JSON-serializable payload.

    Uses canonical JSON serialization (sorted keys) hashed with BLAKE2b.
    """
    payload_json = json.dumps(payload, sort_keys=True, ensure_ascii=True, default=str)
    digest = hashlib.blake2b(payload_json.encode("utf-8"), digest_size=DIGEST_SIZE)
    return f"{kind}:{digest.hexdigest()}"


def analysis_cache_key(batch: Sequence[Any], dest_folder: str) -> str:
    """Key an analysis on the destination and every file's name and hint."""
    files = [
        [
            getattr(file, "original_name", None),
            getattr(file, "relative_path_hint", None),
        ]
        for file in batch
    ]
    return compute_cache_key("analysis", {"dest": dest_folder, "files": files})


def duplication_cache_key(path: str) -> str:
    """Key a duplication check on the normalized path."""
    normalized = path.replace("\\", "/") if isinstance(path, str) else path
    return compute_cache_key("duplication", normalized)
