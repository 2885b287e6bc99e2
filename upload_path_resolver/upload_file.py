"""Data models for uploaded files and their resolution context."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class UploadFile:
    """Represents one uploaded file as handed over by the web layer."""

    original_name: str
    relative_path_hint: str | None = None  # browser webkitRelativePath

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "UploadFile":
        """Build an UploadFile from a snake_case or multer-style mapping."""
        name = data.get("original_name", data.get("originalname", ""))
        hint = data.get("relative_path_hint", data.get("webkitRelativePath"))
        return cls(original_name=name, relative_path_hint=hint)

    @property
    def has_hint(self) -> bool:
        """Return True when a non-blank relative path hint is present."""
        return isinstance(self.relative_path_hint, str) and bool(
            self.relative_path_hint.strip()
        )

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-ready view of the file."""
        return {
            "original_name": self.original_name,
            "relative_path_hint": self.relative_path_hint,
        }


@dataclass(frozen=True)
class ResolutionContext:
    """Destination folder plus the read-only batch used for pattern inference."""

    destination_folder: str
    batch: tuple[UploadFile, ...] = field(default_factory=tuple)
