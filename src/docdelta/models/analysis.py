"""Run result entities.

- AnalysisStatus: Lifecycle of a run
- AnalysisError: Non-fatal problem recorded while the run continued
- AnalysisResult: Everything one run produced
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from docdelta.models.flow import ProjectFlow
from docdelta.models.units import ChangeSet


class AnalysisStatus(Enum):
    """Status of a run."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    COMPLETED_WITH_WARNINGS = "completed_with_warnings"
    FAILED = "failed"


@dataclass
class AnalysisError:
    """Non-fatal error encountered during a run.

    Attributes:
        component: Component that reported it (sources, imports, entry_points, metadata, flow)
        message: Error description
        file_path: File that caused the error (if applicable)
        recoverable: Whether the run continued after this error
    """

    component: str
    message: str
    file_path: str | None = None
    recoverable: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "component": self.component,
            "message": self.message,
            "file_path": self.file_path,
            "recoverable": self.recoverable,
        }


@dataclass
class AnalysisResult:
    """Aggregated output of one incremental run.

    Attributes:
        project_path: Analyzed project root
        project_name: Project name
        timestamp: Run start (UTC)
        status: Current status
        change_set: Unit classification against persisted metadata
        flow: Dependency flow from the resolved entry points
        errors: Non-fatal errors
        persisted: Whether metadata was written (False for dry runs)
    """

    project_path: Path
    project_name: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    status: AnalysisStatus = AnalysisStatus.PENDING
    change_set: ChangeSet = field(default_factory=ChangeSet)
    flow: ProjectFlow = field(default_factory=ProjectFlow)
    errors: list[AnalysisError] = field(default_factory=list)
    persisted: bool = False

    def add_error(self, error: AnalysisError) -> None:
        """Add an analysis error."""
        self.errors.append(error)

    def has_errors(self) -> bool:
        """Check if any errors were recorded."""
        return len(self.errors) > 0

    def get_errors_by_component(self, component: str) -> list[AnalysisError]:
        """Get errors for a specific component."""
        return [e for e in self.errors if e.component == component]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON reports."""
        return {
            "project_path": str(self.project_path),
            "project_name": self.project_name,
            "timestamp": self.timestamp.isoformat(),
            "status": self.status.value,
            "changes": self.change_set.to_dict(),
            "flow": self.flow.to_dict(),
            "errors": [e.to_dict() for e in self.errors],
            "persisted": self.persisted,
        }
