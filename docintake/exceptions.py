"""
Exceptions raised by the extraction strategies.

None of these cross the orchestrator boundary: they are caught per file and
turned into a degraded section plus an entry in BatchStats.errors. An
inconclusive signature check is not an error at all; the detector just
returns None and dispatch falls through to the next signal.
"""

from typing import Any, Optional


class IngestError(Exception):
    """Base exception for all extraction errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ArchiveError(IngestError):
    """Buffer is corrupt or not a ZIP archive."""

    pass


class UnsupportedFormatError(IngestError):
    """No extraction strategy applies to the file."""

    def __init__(self, filename: str, declared_type: str = "") -> None:
        message = f"Unsupported document format: {filename}"
        super().__init__(message, {"filename": filename, "declared_type": declared_type})


class ExtractionEmpty(IngestError):
    """Extraction ran without errors but produced no usable content."""

    pass


class LibraryFailure(IngestError):
    """An underlying format parser raised."""

    def __init__(self, library: str, cause: BaseException) -> None:
        message = f"{library} failed: {cause}"
        super().__init__(message, {"library": library})
        self.library = library
        self.cause = cause
