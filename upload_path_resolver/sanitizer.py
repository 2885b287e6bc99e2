"""Logic for sanitizing path segments and filenames from uploads."""

import posixpath
import re

MAX_PATH_LENGTH = 260
MAX_FILENAME_LENGTH = 100
UNNAMED_FILE = "unnamed_file"

FORBIDDEN_CHARS_RE = re.compile(r'[<>:"|?*\x00-\x1f]')
SEPARATORS_RE = re.compile(r"[/\\]")
EDGE_DOTS_RE = re.compile(r"^[.\s]+|[.\s]+$")
DRIVE_RE = re.compile(r"^[A-Za-z]:")


def split_segments(path: str) -> list[str]:
    """Split a path on either separator, dropping empty segments."""
    if not path or not isinstance(path, str):
        return []
    return [segment for segment in SEPARATORS_RE.split(path) if segment]


def is_absolute(path: str) -> bool:
    """Return True for POSIX, UNC or drive-letter absolute paths."""
    return path.startswith(("/", "\\")) or bool(DRIVE_RE.match(path))


def split_extension(filename: str) -> tuple[str, str]:
    """Split a filename into stem and extension, keeping dotfiles whole."""
    return posixpath.splitext(filename)


class Sanitizer:
    """Sanitizes path segments and filenames to be safe on any filesystem."""

    def __init__(self, max_filename_length: int = MAX_FILENAME_LENGTH) -> None:
        """Initialize the sanitizer with the filename length limit."""
        self.max_filename_length = max_filename_length
        self.reserved = {
            "CON",
            "PRN",
            "AUX",
            "NUL",
            "COM1",
            "COM2",
            "COM3",
            "COM4",
            "COM5",
            "COM6",
            "COM7",
            "COM8",
            "COM9",
            "LPT1",
            "LPT2",
            "LPT3",
            "LPT4",
            "LPT5",
            "LPT6",
            "LPT7",
            "LPT8",
            "LPT9",
        }

    def is_reserved(self, name: str) -> bool:
        """Return True if name is a reserved Windows device name."""
        return name.upper() in self.reserved

    def sanitize_segment(self, segment: str) -> str:
        """Sanitize one directory segment of a path."""
        if not segment or not isinstance(segment, str):
            return ""

        # 1. Strip forbidden characters
        clean = FORBIDDEN_CHARS_RE.sub("", segment)

        # 2. Windows cleanup
        clean = EDGE_DOTS_RE.sub("", clean)

        # 3. Reserved check
        if self.is_reserved(clean):
            clean = f"file_{clean}"

        return clean or UNNAMED_FILE

    def sanitize_path(self, path: str) -> str:
        """Sanitize every segment of a path and join them with '/'."""
        if not path or not isinstance(path, str):
            return ""
        segments = [
            self.sanitize_segment(segment)
            for segment in split_segments(path)
            if segment.strip()
        ]
        return "/".join(segments)

    def sanitize_filename(self, filename: str) -> str:
        """Sanitize a filename, truncating long names but keeping the extension."""
        if not filename or not isinstance(filename, str):
            return UNNAMED_FILE

        clean = re.sub(r"_+", "_", FORBIDDEN_CHARS_RE.sub("_", filename))
        clean = EDGE_DOTS_RE.sub("", clean)

        stem, _ext = split_extension(clean)
        if self.is_reserved(stem):
            clean = f"file_{clean}"

        if not clean:
            return UNNAMED_FILE

        if len(clean) > self.max_filename_length:
            stem, ext = split_extension(clean)
            clean = stem[: self.max_filename_length - len(ext)] + ext

        return clean

    def is_valid_segment(self, segment: str) -> bool:
        """Return True if a segment can be written as-is."""
        if not segment or not segment.strip():
            return False
        if FORBIDDEN_CHARS_RE.search(segment):
            return False
        if self.is_reserved(segment):
            return False
        # Segments made only of dots or spaces
        return not re.fullmatch(r"[.\s]+", segment)
