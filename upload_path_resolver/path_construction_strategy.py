"""Logic for building destination paths with the basename, webkit and smart strategies."""

from typing import Any

from upload_path_resolver.errors import PathConstructionError, PathSecurityError
from upload_path_resolver.sanitizer import (
    MAX_PATH_LENGTH,
    UNNAMED_FILE,
    Sanitizer,
    is_absolute,
    split_segments,
)


class PathConstructionStrategy:
    """Builds and validates relative upload paths without touching the disk."""

    def __init__(self, sanitizer: Sanitizer | None = None) -> None:
        """Initialize the strategy with a sanitizer."""
        self.sanitizer = sanitizer or Sanitizer()

    def construct_basename(self, dest_folder: str, file: Any) -> str:
        """Place the file directly in dest_folder, ignoring any relative path hint."""
        original_name = getattr(file, "original_name", None)
        if not original_name or not isinstance(original_name, str):
            msg = "Basename construction failed: file object or original name is missing"
            raise PathConstructionError(msg)

        safe_dest = self._sanitized_destination(dest_folder)

        raw_name = split_segments(original_name)
        filename = self.sanitizer.sanitize_filename(raw_name[-1] if raw_name else "")
        if filename == UNNAMED_FILE:
            msg = f"Basename construction failed: filename could not be sanitized: {original_name!r}"
            raise PathConstructionError(msg)

        return self._validated(f"{safe_dest}/{filename}", "Basename")

    def construct_webkit_path(self, dest_folder: str, file: Any) -> str:
        """Keep the full relative path hint under dest_folder."""
        hint = self._checked_hint(file, "webkit")
        safe_dest = self._sanitized_destination(dest_folder)

        safe_hint = self.sanitizer.sanitize_path(hint)
        if not safe_hint:
            msg = f"Webkit path construction failed: hint could not be sanitized: {hint!r}"
            raise PathConstructionError(msg)

        return self._validated(f"{safe_dest}/{safe_hint}", "Webkit")

    def construct_smart_path(self, dest_folder: str, file: Any) -> str:
        """Use the hint, dropping a leading segment that repeats dest_folder's name."""
        hint = self._checked_hint(file, "smart")
        safe_dest = self._sanitized_destination(dest_folder)

        dest_name = safe_dest.rsplit("/", 1)[-1]
        hint_segments = split_segments(self.sanitizer.sanitize_path(hint))

        if hint_segments and hint_segments[0] == dest_name:
            remaining = hint_segments[1:]
            if not remaining:
                msg = "Smart path construction failed: duplication removal left an empty path"
                raise PathConstructionError(msg)
            return self._validated(f"{safe_dest}/{'/'.join(remaining)}", "Smart")

        return self.construct_webkit_path(dest_folder, file)

    def has_security_issues(self, hint: str) -> bool:
        """Return True if a hint tries traversal, is absolute or is too long."""
        if not hint or not isinstance(hint, str):
            return False
        if ".." in hint or "./" in hint or ".\\" in hint:
            return True
        if is_absolute(hint):
            return True
        return len(hint) > MAX_PATH_LENGTH

    def is_valid_path(self, path: str) -> bool:
        """Validate a constructed path for security and filesystem compatibility."""
        if not path or not isinstance(path, str):
            return False
        if len(path) > MAX_PATH_LENGTH:
            return False
        if "\\" in path or is_absolute(path):
            return False
        # "." and ".." segments fail segment validation
        return all(self.sanitizer.is_valid_segment(s) for s in path.split("/"))

    def _checked_hint(self, file: Any, strategy: str) -> str:
        hint = getattr(file, "relative_path_hint", None)
        if not hint or not isinstance(hint, str) or not hint.strip():
            msg = f"Relative path hint is missing, cannot use {strategy} strategy"
            raise PathConstructionError(msg)
        if self.has_security_issues(hint):
            msg = f"Security violation in relative path hint for {strategy} strategy: {hint!r}"
            raise PathSecurityError(msg)
        return hint

    def _sanitized_destination(self, dest_folder: str) -> str:
        safe_dest = self.sanitizer.sanitize_path(dest_folder)
        if not safe_dest:
            msg = f"Invalid destination folder after sanitization: {dest_folder!r}"
            raise PathConstructionError(msg)
        return safe_dest

    def _validated(self, path: str, label: str) -> str:
        if not self.is_valid_path(path):
            msg = f"{label} path construction failed: path failed validation: {path!r}"
            raise PathConstructionError(msg)
        return path
