"""Logic for detecting duplicated segments in upload paths."""

import logging
from dataclasses import dataclass, field

from upload_path_resolver.duplication_result import DuplicationResult, DuplicationType
from upload_path_resolver.sanitizer import MAX_PATH_LENGTH, split_segments

logger = logging.getLogger(__name__)

MIN_USER_PATTERN_SEGMENTS = 4
CONSECUTIVE_CONFIDENCE = 0.95
USER_PATTERN_CONFIDENCE = 0.85


@dataclass(frozen=True)
class ConsecutiveDuplicates:
    """Segments dropped because they repeated their predecessor."""

    has_duplication: bool
    suggested_path: str
    duplicated_segments: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class UserPatternDuplication:
    """A two-segment pattern that occurs twice in one path."""

    has_user_duplication: bool
    suggested_path: str
    duplicated_pattern: str = ""


class DuplicationDetector:
    """Finds duplicated path segments such as documents/documents/."""

    def detect_consecutive_duplicates(self, full_path: str) -> ConsecutiveDuplicates:
        """Drop every segment that equals the one before it."""
        if not full_path or not isinstance(full_path, str):
            return ConsecutiveDuplicates(False, full_path or "")

        segments = split_segments(full_path)
        duplicated: list[str] = []
        cleaned: list[str] = []

        for i, segment in enumerate(segments):
            if i > 0 and segment == segments[i - 1]:
                duplicated.append(segment)
                continue
            cleaned.append(segment)

        return ConsecutiveDuplicates(
            has_duplication=bool(duplicated),
            suggested_path="/".join(cleaned),
            duplicated_segments=tuple(duplicated),
        )

    def detect_user_pattern_duplication(
        self, full_path: str
    ) -> UserPatternDuplication:
        """Find the first repeated segment pair, e.g. users/john/users/john/."""
        if not full_path or not isinstance(full_path, str):
            return UserPatternDuplication(False, full_path or "")

        normalized = full_path.replace("\\", "/")
        segments = split_segments(normalized)

        if len(segments) < MIN_USER_PATTERN_SEGMENTS:
            return UserPatternDuplication(False, normalized)

        for i in range(len(segments) - 1):
            for j in range(i + 2, len(segments) - 1):
                if segments[i] == segments[j] and segments[i + 1] == segments[j + 1]:
                    cleaned = segments[:j] + segments[j + 2 :]
                    return UserPatternDuplication(
                        has_user_duplication=True,
                        suggested_path="/".join(cleaned),
                        duplicated_pattern=f"{segments[i]}/{segments[i + 1]}",
                    )

        return UserPatternDuplication(False, normalized)

    def analyze_path_duplication(self, full_path: str) -> DuplicationResult:
        """Run every detector; consecutive duplicates take priority.

        Never raises: invalid input yields a DuplicationType.ERROR result that
        echoes the path unchanged.
        """
        try:
            if not full_path or not isinstance(full_path, str):
                msg = "Invalid path provided for duplication analysis"
                raise ValueError(msg)
            if len(full_path) > MAX_PATH_LENGTH:
                msg = "Path too long for duplication analysis"
                raise ValueError(msg)

            consecutive = self.detect_consecutive_duplicates(full_path)
            if consecutive.has_duplication:
                return DuplicationResult(
                    has_duplication=True,
                    duplication_type=DuplicationType.CONSECUTIVE,
                    original_path=full_path,
                    suggested_path=consecutive.suggested_path,
                    confidence=CONSECUTIVE_CONFIDENCE,
                    duplicated_segments=consecutive.duplicated_segments,
                )

            pattern = self.detect_user_pattern_duplication(full_path)
            if pattern.has_user_duplication:
                return DuplicationResult(
                    has_duplication=True,
                    duplication_type=DuplicationType.USER_PATTERN,
                    original_path=full_path,
                    suggested_path=pattern.suggested_path,
                    confidence=USER_PATTERN_CONFIDENCE,
                    duplicated_pattern=pattern.duplicated_pattern,
                )

            return DuplicationResult(
                has_duplication=False,
                duplication_type=DuplicationType.NONE,
                original_path=full_path,
                suggested_path=full_path,
                confidence=1.0,
            )
        except Exception as exc:  # noqa: BLE001
            logger.debug("Duplication analysis rejected %r: %s", full_path, exc)
            echoed = full_path if isinstance(full_path, str) else ""
            return DuplicationResult(
                has_duplication=False,
                duplication_type=DuplicationType.ERROR,
                original_path=echoed,
                suggested_path=echoed,
                confidence=0.0,
                error=str(exc),
            )
