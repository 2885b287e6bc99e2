"""Logic for classifying an upload batch as individual files or a folder upload."""

import logging
import re
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from upload_path_resolver.analysis_result import AnalysisResult, Strategy, UploadType
from upload_path_resolver.sanitizer import split_segments

logger = logging.getLogger(__name__)

FOLDER_CONFIDENCE_CUTOFF = 0.8
MIN_VALID_HINT_RATIO = 0.5
MIN_COMMON_DEPTH = 1.5
MIN_SHORT_SEGMENT_LEN = 2

COMMON_FOLDER_NAMES = {"src", "lib", "assets", "images", "docs", "components", "pages"}

SUSPICIOUS_SEGMENT_PATTERNS = (
    re.compile(r"^[a-f0-9]{32}$"),  # MD5-like
    re.compile(r"^[a-f0-9]{40}$"),  # SHA1-like
    re.compile(r"^tmp_"),
    re.compile(r"^temp_"),
)


@dataclass(frozen=True)
class HintPattern:
    """A relative path hint broken into segments."""

    hint: str
    segments: tuple[str, ...]

    @property
    def depth(self) -> int:
        """Number of segments in the hint."""
        return len(self.segments)


@dataclass(frozen=True)
class FolderStructure:
    """Shared structure found across the hints of a batch."""

    has_common_structure: bool
    common_prefix: str
    avg_depth: float
    max_depth: int = 0
    min_depth: int = 0


class PathAnalysisEngine:
    """Decides which path construction strategy an upload batch calls for."""

    def analyze_upload_context(
        self, batch: Sequence[Any], dest_folder: str
    ) -> AnalysisResult:
        """Classify the batch and recommend a strategy.

        Never raises; any internal failure is reported as a low-confidence
        basename recommendation carrying the error text as a warning.
        """
        start = time.perf_counter()
        try:
            if not dest_folder or not isinstance(dest_folder, str):
                msg = "Invalid destination folder provided"
                raise ValueError(msg)
            if batch is None or isinstance(batch, (str, bytes)) or not isinstance(
                batch, Sequence
            ):
                msg = "Files must be provided as a sequence"
                raise TypeError(msg)

            if not batch:
                return _result(
                    UploadType.INDIVIDUAL,
                    Strategy.BASENAME,
                    1.0,
                    [],
                    "No files provided - defaulting to individual upload",
                )

            for i, file in enumerate(batch):
                name = getattr(file, "original_name", None)
                if not name or not isinstance(name, str):
                    msg = f"File at index {i} is invalid or missing original name"
                    raise ValueError(msg)

            if len(batch) == 1:
                analysis = self._analyze_single_file(batch[0], dest_folder)
            else:
                analysis = self._analyze_multiple_files(batch, dest_folder)

            logger.debug(
                "Analysis completed in %.3fms: %s/%s (confidence %s, %d files)",
                (time.perf_counter() - start) * 1000,
                analysis.upload_type.value,
                analysis.strategy.value,
                analysis.confidence,
                len(batch),
            )
            return analysis
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Analysis failed in %.3fms for %r: %s",
                (time.perf_counter() - start) * 1000,
                dest_folder,
                exc,
            )
            return _result(
                UploadType.INDIVIDUAL,
                Strategy.BASENAME,
                0.1,
                [f"Analysis error: {exc}"],
                f"Analysis failed, using safe fallback: {exc}",
            )

    def _analyze_single_file(self, file: Any, dest_folder: str) -> AnalysisResult:
        hint = file.relative_path_hint
        if not hint or not isinstance(hint, str) or not hint.strip():
            return _result(
                UploadType.INDIVIDUAL,
                Strategy.BASENAME,
                1.0,
                [],
                "Single file without relative path hint - individual upload",
            )

        hint_segments = split_segments(hint)
        dest_segments = split_segments(dest_folder)

        if hint == file.original_name:
            return _result(
                UploadType.INDIVIDUAL,
                Strategy.BASENAME,
                1.0,
                [],
                "Relative path hint matches original name - individual upload",
            )

        if len(hint_segments) == 1:
            return _result(
                UploadType.INDIVIDUAL,
                Strategy.BASENAME,
                0.95,
                [],
                "Single file with relative path hint containing only the filename",
            )

        if self._has_potential_duplication(dest_segments, hint_segments):
            return _result(
                UploadType.INDIVIDUAL,
                Strategy.BASENAME,
                0.9,
                ["Potential path duplication detected in relative path hint"],
                "Single file with suspicious relative path hint - likely individual upload",
            )

        if not self.is_valid_hint(hint):
            return _result(
                UploadType.INDIVIDUAL,
                Strategy.BASENAME,
                0.8,
                ["Invalid relative path hint detected"],
                "Invalid relative path hint - using basename fallback",
            )

        confidence = self._single_file_confidence(hint_segments, dest_segments)
        is_folder = round(confidence, 2) > FOLDER_CONFIDENCE_CUTOFF
        return _result(
            UploadType.FOLDER if is_folder else UploadType.INDIVIDUAL,
            Strategy.WEBKIT_PATH if is_folder else Strategy.BASENAME,
            confidence,
            [],
            f"Single file with {len(hint_segments)} hint segments - "
            f"confidence: {round(confidence, 2)}",
        )

    def _analyze_multiple_files(
        self, batch: Sequence[Any], dest_folder: str
    ) -> AnalysisResult:
        warnings: list[str] = []
        with_hint = [f for f in batch if _non_blank(f.relative_path_hint)]
        valid = [f for f in with_hint if self.is_valid_hint(f.relative_path_hint)]

        if not valid:
            if with_hint:
                warnings.append("Files have relative path hints but they appear invalid")
            return _result(
                UploadType.INDIVIDUAL,
                Strategy.BASENAME,
                1.0,
                warnings,
                "Multiple files without valid relative path hints - individual uploads",
            )

        if len(valid) / len(batch) < MIN_VALID_HINT_RATIO:
            warnings.append("Less than 50% of files have a valid relative path hint")
            return _result(
                UploadType.INDIVIDUAL,
                Strategy.BASENAME,
                0.9,
                warnings,
                "Majority of files lack a valid relative path hint - "
                "treating as individual uploads",
            )

        patterns = [
            HintPattern(f.relative_path_hint, tuple(split_segments(f.relative_path_hint)))
            for f in valid
        ]
        structure = self._folder_structure(patterns)

        if structure.has_common_structure:
            confidence = self._folder_confidence(structure, len(batch))
            is_folder = round(confidence, 2) > FOLDER_CONFIDENCE_CUTOFF
            return _result(
                UploadType.FOLDER if is_folder else UploadType.INDIVIDUAL,
                Strategy.WEBKIT_PATH if is_folder else Strategy.BASENAME,
                confidence,
                warnings,
                f"Multiple files with common folder structure "
                f"'{structure.common_prefix}' - confidence: {round(confidence, 2)}",
            )

        warnings.append("Mixed upload patterns detected - using basename for safety")
        return _result(
            UploadType.INDIVIDUAL,
            Strategy.BASENAME,
            0.7,
            warnings,
            "Multiple files with mixed relative path patterns - using basename fallback",
        )

    def is_valid_hint(self, hint: str | None) -> bool:
        """Return True if a hint is non-blank, traversal free and not temp/hash-like."""
        if not hint or not isinstance(hint, str) or not hint.strip():
            return False
        if ".." in hint or "\\" in hint:
            return False

        segments = split_segments(hint)
        if not segments:
            return False

        return not any(
            pattern.search(segment)
            for segment in segments
            for pattern in SUSPICIOUS_SEGMENT_PATTERNS
        )

    def _has_potential_duplication(
        self, dest_segments: list[str], hint_segments: list[str]
    ) -> bool:
        if any(segment in hint_segments for segment in dest_segments):
            return True
        return any(a == b for a, b in zip(hint_segments, hint_segments[1:]))

    def _single_file_confidence(
        self, hint_segments: list[str], dest_segments: list[str]
    ) -> float:
        confidence = 0.5

        if len(hint_segments) > 2:  # noqa: PLR2004
            confidence += 0.2

        if any(segment in dest_segments for segment in hint_segments):
            confidence -= 0.3

        if self._looks_like_real_folder(hint_segments):
            confidence += 0.2

        return max(0.1, min(0.95, confidence))

    def _looks_like_real_folder(self, segments: list[str]) -> bool:
        # Very short names are usually an artifact of duplication
        if any(len(segment) <= MIN_SHORT_SEGMENT_LEN for segment in segments):
            return False
        has_common_name = any(s.lower() in COMMON_FOLDER_NAMES for s in segments)
        return has_common_name or len(segments) >= 2  # noqa: PLR2004

    def _folder_structure(self, patterns: list[HintPattern]) -> FolderStructure:
        if not patterns:
            return FolderStructure(False, "", 0.0)

        if len(patterns) == 1:
            prefix_segments = list(patterns[0].segments[:-1])
        else:
            prefix_segments = list(patterns[0].segments)
            for pattern in patterns[1:]:
                prefix_segments = _common_prefix(prefix_segments, pattern.segments)
                if not prefix_segments:
                    break

        depths = [p.depth for p in patterns]
        avg_depth = sum(depths) / len(depths)
        common_prefix = "/".join(prefix_segments)

        return FolderStructure(
            has_common_structure=bool(common_prefix) and avg_depth > MIN_COMMON_DEPTH,
            common_prefix=common_prefix,
            avg_depth=avg_depth,
            max_depth=max(depths),
            min_depth=min(depths),
        )

    def _folder_confidence(self, structure: FolderStructure, file_count: int) -> float:
        confidence = 0.7

        if structure.avg_depth > 2:  # noqa: PLR2004
            confidence += 0.1

        if structure.max_depth - structure.min_depth <= 1:
            confidence += 0.1

        if file_count > 3:  # noqa: PLR2004
            confidence += 0.05

        return min(0.95, confidence)


def _non_blank(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _common_prefix(left: Sequence[str], right: Sequence[str]) -> list[str]:
    common: list[str] = []
    for a, b in zip(left, right):
        if a != b:
            break
        common.append(a)
    return common


def _result(
    upload_type: UploadType,
    strategy: Strategy,
    confidence: float,
    warnings: list[str],
    reasoning: str,
) -> AnalysisResult:
    return AnalysisResult(
        upload_type=upload_type,
        strategy=strategy,
        confidence=round(confidence, 2),
        warnings=tuple(warnings),
        reasoning=reasoning,
    )
