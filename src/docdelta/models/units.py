"""Code unit and change tracking entities.

This module contains entities for incremental change detection:
- CodeUnit: A documentable fragment of source with a stable id
- UnitMetadata: Last-seen fingerprint and annotations for a unit id
- ChangeSet: Added/modified/deleted/unchanged partition between two snapshots
- ChangeStatistics: Counts derived from a ChangeSet
- ParsedModule: Structural record of one source file from the module parser
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from docdelta.tracking.fingerprint import fingerprint


@dataclass
class CodeUnit:
    """A documentable fragment of source (function, class, method, ...).

    Identity is ``id``, which the module parser keeps stable across runs.
    ``content_hash`` is derived from ``content`` when not supplied; an
    explicit hash is only passed for snapshot stubs rebuilt from persisted
    metadata, where the content itself is no longer available.

    Attributes:
        id: Stable unit identifier assigned by the parser
        file_path: Owning source file (project-relative)
        content: Exact source text of the unit
        start_line: First line (1-based, inclusive)
        end_line: Last line (1-based, inclusive)
        content_hash: SHA-256 fingerprint of content
        declared_dependencies: Names the unit declares it depends on
        kind: Unit kind (function, class, method, interface, ...)
        language: Source language
        metadata: Parser-provided details (name, className, methodName, ...)
    """

    id: str
    file_path: str
    content: str = ""
    start_line: int = 0
    end_line: int = 0
    content_hash: str | None = None
    declared_dependencies: list[str] = field(default_factory=list)
    kind: str = "unknown"
    language: str = "unknown"
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.content_hash is None:
            self.content_hash = fingerprint(self.content)

    @property
    def hash(self) -> str:
        """Shorthand for the content fingerprint."""
        return self.content_hash or ""

    @property
    def name(self) -> str:
        """Display name from parser metadata, falling back to the id."""
        return str(self.metadata.get("name") or self.id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "filePath": self.file_path,
            "startLine": self.start_line,
            "endLine": self.end_line,
            "hash": self.content_hash,
            "type": self.kind,
            "language": self.language,
            "dependencies": self.declared_dependencies,
        }


@dataclass
class UnitMetadata:
    """Persisted record of a unit's last-seen state.

    Attributes:
        hash: Fingerprint seen on the last run that recorded this unit
        last_modified: When the record was last written (UTC)
        summary_ref: Reference to the generated summary, if any
        doc_references: Documents that mention this unit
        file_path: Owning source file, used to confirm deletions
    """

    hash: str
    last_modified: datetime = field(default_factory=lambda: datetime.now(UTC))
    summary_ref: str | None = None
    doc_references: list[str] = field(default_factory=list)
    file_path: str | None = None

    def __post_init__(self) -> None:
        """Ensure timestamp is timezone-aware UTC."""
        if self.last_modified.tzinfo is None:
            self.last_modified = self.last_modified.replace(tzinfo=UTC)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted JSON shape."""
        data: dict[str, Any] = {
            "hash": self.hash,
            "lastModified": self.last_modified.isoformat(),
            "docReferences": list(self.doc_references),
        }
        if self.summary_ref is not None:
            data["summaryRef"] = self.summary_ref
        if self.file_path is not None:
            data["filePath"] = self.file_path
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UnitMetadata":
        """Build from the persisted JSON shape.

        Raises:
            KeyError: If the hash is missing
            ValueError: If the timestamp is not ISO-8601
        """
        last_modified = data.get("lastModified")
        return cls(
            hash=data["hash"],
            last_modified=(
                datetime.fromisoformat(last_modified) if last_modified else datetime.now(UTC)
            ),
            summary_ref=data.get("summaryRef"),
            doc_references=list(data.get("docReferences") or []),
            file_path=data.get("filePath"),
        )


@dataclass
class ChangeStatistics:
    """Counts derived from a ChangeSet."""

    added: int = 0
    modified: int = 0
    deleted: int = 0
    unchanged: int = 0
    files_changed: int = 0

    @property
    def total(self) -> int:
        return self.added + self.modified + self.deleted + self.unchanged

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary for serialization."""
        return {
            "added": self.added,
            "modified": self.modified,
            "deleted": self.deleted,
            "unchanged": self.unchanged,
            "total": self.total,
            "filesChanged": self.files_changed,
        }


@dataclass
class ChangeSet:
    """Partition of the union of two unit snapshots.

    Every unit id of ``previous ∪ current`` appears in exactly one list.
    Order inside a list carries no meaning.
    """

    added: list[CodeUnit] = field(default_factory=list)
    modified: list[CodeUnit] = field(default_factory=list)
    deleted: list[CodeUnit] = field(default_factory=list)
    unchanged: list[CodeUnit] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.modified or self.deleted)

    @property
    def needs_update(self) -> list[CodeUnit]:
        """Units whose documentation must be regenerated."""
        return [*self.added, *self.modified]

    def changed_files(self) -> set[str]:
        """Files owning at least one added, modified or deleted unit."""
        return {
            unit.file_path
            for unit in (*self.added, *self.modified, *self.deleted)
            if unit.file_path
        }

    def statistics(self) -> ChangeStatistics:
        """Summarize partition sizes."""
        return ChangeStatistics(
            added=len(self.added),
            modified=len(self.modified),
            deleted=len(self.deleted),
            unchanged=len(self.unchanged),
            files_changed=len(self.changed_files()),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary of unit ids per partition."""
        return {
            "added": sorted(unit.id for unit in self.added),
            "modified": sorted(unit.id for unit in self.modified),
            "deleted": sorted(unit.id for unit in self.deleted),
            "unchanged": sorted(unit.id for unit in self.unchanged),
            "statistics": self.statistics().to_dict(),
        }


@dataclass
class ParsedModule:
    """Structural record of one source file, produced by the module parser.

    Attributes:
        path: File path (absolute or project-relative)
        language: Source language
        chunks: Code units found in the file
        imports: Import specifiers exactly as written in the source
        exports: Exported names
    """

    path: str
    language: str = "unknown"
    chunks: list[CodeUnit] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)
