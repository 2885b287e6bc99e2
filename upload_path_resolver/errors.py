"""Exceptions raised while resolving upload paths."""

from upload_path_resolver.error_record import ErrorCategory


class PathResolutionError(Exception):
    """Base class for path resolution failures.

    Subclasses pin an error category so the error handler does not have to
    guess it from the message.
    """

    category: ErrorCategory | None = None


class PathConstructionError(PathResolutionError):
    """A strategy could not build a valid path."""

    category = ErrorCategory.PATH_CONSTRUCTION


class PathSecurityError(PathConstructionError):
    """A relative path hint tried to escape the destination folder."""

    category = ErrorCategory.SECURITY


class UploadValidationError(PathResolutionError):
    """The resolver was handed an unusable file or destination."""

    category = ErrorCategory.VALIDATION


class DuplicationAnalysisError(PathResolutionError):
    """Duplicate segment detection itself failed."""

    category = ErrorCategory.DUPLICATION
