"""Project entity representing the source tree being analyzed."""

import os
from dataclasses import dataclass
from pathlib import Path

from docdelta.errors import ProjectRootError


@dataclass
class Project:
    """Source tree being analyzed.

    Attributes:
        path: Absolute path to the project root
        name: Project name (directory name unless overridden)

    Validation Rules:
        - path must exist, be a directory and be readable (fatal otherwise)
        - missing .git directory is only a warning
    """

    path: Path
    name: str

    def __post_init__(self) -> None:
        if isinstance(self.path, str):
            self.path = Path(self.path)
        self.path = self.path.resolve()

    def validate(self) -> list[str]:
        """Check the project root precondition.

        Returns:
            Validation warnings (empty if none)

        Raises:
            ProjectRootError: If the root is missing, not a directory or unreadable
        """
        warnings: list[str] = []

        if not self.path.exists():
            raise ProjectRootError(self.path, f"Project root does not exist: {self.path}")

        if not self.path.is_dir():
            raise ProjectRootError(self.path, f"Project root is not a directory: {self.path}")

        if not os.access(self.path, os.R_OK | os.X_OK):
            raise ProjectRootError(self.path, f"Project root is not readable: {self.path}")

        if not (self.path / ".git").exists():
            warnings.append(f"Not a git repository (no .git directory): {self.path}")

        return warnings

    @property
    def is_git_repo(self) -> bool:
        """Check if the path is a git repository."""
        return (self.path / ".git").exists()

    @classmethod
    def from_path(cls, path: Path | str, name: str | None = None) -> "Project":
        """Create a Project from a path.

        Args:
            path: Path to the project root
            name: Optional name override (defaults to directory name)
        """
        path = Path(path).resolve()
        return cls(path=path, name=name or path.name)
