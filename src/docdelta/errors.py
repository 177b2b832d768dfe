"""Exception hierarchy for fatal DocDelta conditions.

Only conditions that must abort a run are raised. Recoverable problems
(an unreadable source file, an unresolvable import, a corrupt metadata file)
are logged and collected as AnalysisError entries instead.
"""

from pathlib import Path


class DocDeltaError(Exception):
    """Base class for all DocDelta errors."""


class ProjectRootError(DocDeltaError):
    """Raised when the project root is missing or not accessible."""

    def __init__(self, path: Path, message: str | None = None) -> None:
        self.path = path
        self.message = message or f"Project root not accessible: {path}"
        super().__init__(self.message)


class MetadataPersistenceError(DocDeltaError):
    """Raised when the metadata document cannot be written.

    Always propagates to the caller.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to persist metadata to {path}: {reason}")


class RecordFormatError(DocDeltaError):
    """Raised when a structural records document cannot be understood."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"Invalid module records in {source}: {message}")
