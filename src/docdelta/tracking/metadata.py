"""Durable per-unit metadata and the short-lived content cache.

The metadata document is a single JSON file::

    {
      "version": "1.0.0",
      "lastGenerated": "2026-01-31T19:45:23+00:00",
      "chunks": {
        "<unit id>": {
          "hash": "...",
          "lastModified": "...",
          "summaryRef": "...",        # optional
          "docReferences": ["..."],
          "filePath": "src/app.ts"    # optional
        }
      }
    }

Loading is forgiving: a missing or corrupt document yields empty metadata.
Writing is strict: every mutation re-reads the document under an advisory
lock, applies the change, and replaces the file atomically. Any failure on
that path raises MetadataPersistenceError.
"""

import json
import logging
import os
import tempfile
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

from docdelta.errors import MetadataPersistenceError
from docdelta.models.units import CodeUnit, UnitMetadata
from docdelta.tracking.fingerprint import fingerprint, fingerprint_file
from docdelta.tracking.locking import exclusive_lock

if TYPE_CHECKING:
    from docdelta.config import MetadataConfig

logger = logging.getLogger(__name__)

METADATA_FILE = "project.json"
FORMAT_VERSION = "1.0.0"
CACHE_SUFFIX = ".cache"
DEFAULT_CACHE_TTL = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class MetadataStatistics:
    """Summary of the store's contents.

    Attributes:
        total_units: Units with persisted metadata
        documented_units: Units with a summary reference
        last_generated: Time of the last persisted write
        cache_entries: Number of cache files on disk
        cache_size: Total bytes used by cache files
    """

    total_units: int
    documented_units: int
    last_generated: datetime | None
    cache_entries: int
    cache_size: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "totalUnits": self.total_units,
            "documentedUnits": self.documented_units,
            "lastGenerated": self.last_generated.isoformat() if self.last_generated else None,
            "cacheEntries": self.cache_entries,
            "cacheSize": self.cache_size,
        }


@dataclass
class FileMetadata:
    """Hash and stat information of a single file."""

    hash: str
    last_modified: datetime
    size: int


class MetadataStore:
    """Durable map of unit id to UnitMetadata, plus a content cache.

    One instance per run, passed explicitly to the components that need it.

    Attributes:
        metadata_dir: Directory holding the metadata document
        cache_dir: Directory holding cache entries
        enable_cache: Whether the content cache is active
        cache_ttl: Maximum age of a cache entry
    """

    def __init__(
        self,
        metadata_dir: Path,
        cache_dir: Path | None = None,
        enable_cache: bool = True,
        cache_ttl: timedelta = DEFAULT_CACHE_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the store. Nothing is read until first access.

        Args:
            metadata_dir: Directory for project.json
            cache_dir: Directory for cache entries (defaults to metadata_dir/cache)
            enable_cache: Whether cache_file/get_cached_file are active
            cache_ttl: Cache entry lifetime
            clock: Source of the current time (UTC)
        """
        self.metadata_dir = metadata_dir
        self.cache_dir = cache_dir or metadata_dir / "cache"
        self.enable_cache = enable_cache
        self.cache_ttl = cache_ttl
        self._clock = clock

        self._units: dict[str, UnitMetadata] = {}
        self._version = FORMAT_VERSION
        self._last_generated: datetime | None = None
        self._loaded = False

    @classmethod
    def from_config(cls, config: "MetadataConfig", project_root: Path) -> "MetadataStore":
        """Create a store from the metadata section of the configuration."""
        return cls(
            metadata_dir=config.metadata_path(project_root),
            cache_dir=config.cache_path(project_root),
            enable_cache=config.enable_cache,
            cache_ttl=config.cache_ttl,
        )

    @property
    def metadata_file(self) -> Path:
        return self.metadata_dir / METADATA_FILE

    @property
    def last_generated(self) -> datetime | None:
        self._ensure_loaded()
        return self._last_generated

    # =========================================================================
    # Loading and persistence
    # =========================================================================

    def load(self) -> dict[str, UnitMetadata]:
        """Read the metadata document.

        A missing document is not an error. A document that cannot be parsed
        is logged as a warning and replaced by empty metadata.

        Returns:
            Unit metadata keyed by id
        """
        self._version, self._last_generated, self._units = self._read()
        self._loaded = True
        return self._units

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def _read(self) -> tuple[str, datetime | None, dict[str, UnitMetadata]]:
        path = self.metadata_file
        if not path.exists():
            logger.debug("No metadata at %s, starting empty", path)
            return FORMAT_VERSION, None, {}

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return self._parse_document(data)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Failed to load metadata from %s, starting empty: %s", path, e)
            return FORMAT_VERSION, None, {}

    @staticmethod
    def _parse_document(data: Any) -> tuple[str, datetime | None, dict[str, UnitMetadata]]:
        if not isinstance(data, dict):
            raise ValueError("metadata document is not a JSON object")
        chunks = data.get("chunks") or {}
        if not isinstance(chunks, dict):
            raise ValueError("'chunks' is not a JSON object")
        last_generated = data.get("lastGenerated")
        units = {unit_id: UnitMetadata.from_dict(entry) for unit_id, entry in chunks.items()}
        return (
            str(data.get("version", FORMAT_VERSION)),
            datetime.fromisoformat(last_generated) if last_generated else None,
            units,
        )

    def _document(self) -> dict[str, Any]:
        return {
            "version": self._version,
            "lastGenerated": self._last_generated.isoformat() if self._last_generated else None,
            "chunks": {unit_id: meta.to_dict() for unit_id, meta in self._units.items()},
        }

    def _write(self) -> None:
        """Atomically replace the metadata document with the in-memory state."""
        self._last_generated = self._clock()
        payload = json.dumps(self._document(), indent=2)
        path = self.metadata_file
        tmp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise MetadataPersistenceError(path, str(e)) from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
        logger.debug("Saved %d unit records to %s", len(self._units), path)

    @contextmanager
    def _transaction(self) -> Iterator[dict[str, UnitMetadata]]:
        """Lock, re-read the document, let the caller mutate it, write it back."""
        try:
            with exclusive_lock(self.metadata_file):
                self.load()
                yield self._units
                self._write()
        except MetadataPersistenceError:
            raise
        except OSError as e:
            raise MetadataPersistenceError(self.metadata_file, str(e)) from e

    def save(self) -> None:
        """Persist the in-memory state under the lock.

        Raises:
            MetadataPersistenceError: If the document cannot be written
        """
        self._ensure_loaded()
        try:
            with exclusive_lock(self.metadata_file):
                self._write()
        except OSError as e:
            raise MetadataPersistenceError(self.metadata_file, str(e)) from e

    # =========================================================================
    # Unit metadata
    # =========================================================================

    def get(self, unit_id: str) -> UnitMetadata | None:
        """Return stored metadata for a unit id, if any."""
        self._ensure_loaded()
        return self._units.get(unit_id)

    def items(self) -> Iterator[tuple[str, UnitMetadata]]:
        self._ensure_loaded()
        return iter(list(self._units.items()))

    def __len__(self) -> int:
        self._ensure_loaded()
        return len(self._units)

    def __contains__(self, unit_id: object) -> bool:
        self._ensure_loaded()
        return unit_id in self._units

    def upsert(self, unit_id: str, metadata: UnitMetadata) -> None:
        """Insert or replace one unit's metadata and persist it."""
        with self._transaction() as units:
            units[unit_id] = metadata

    def upsert_batch(
        self,
        units: Iterable[CodeUnit],
        summaries: Mapping[str, str] | None = None,
    ) -> int:
        """Record the current hash and timestamp of many units in one write.

        Document references survive. A previous summary reference survives
        only while the hash is unchanged; a new one from ``summaries`` always
        wins.

        Args:
            units: Units to record
            summaries: Optional summary reference per unit id

        Returns:
            Number of units written

        Raises:
            MetadataPersistenceError: If the document cannot be written
        """
        batch = list(units)
        now = self._clock()
        with self._transaction() as stored:
            for unit in batch:
                existing = stored.get(unit.id)
                if summaries is not None and unit.id in summaries:
                    summary_ref: str | None = summaries[unit.id]
                elif existing is not None and existing.hash == unit.hash:
                    summary_ref = existing.summary_ref
                else:
                    summary_ref = None

                stored[unit.id] = UnitMetadata(
                    hash=unit.hash,
                    last_modified=now,
                    summary_ref=summary_ref,
                    doc_references=list(existing.doc_references) if existing else [],
                    file_path=unit.file_path or (existing.file_path if existing else None),
                )
        logger.debug("Recorded metadata for %d units", len(batch))
        return len(batch)

    def has_changed(self, unit: CodeUnit) -> bool:
        """True if the unit is unknown or its hash differs from the stored one."""
        metadata = self.get(unit.id)
        return metadata is None or metadata.hash != unit.hash

    def changed_units(self, units: Iterable[CodeUnit]) -> list[CodeUnit]:
        """Filter units down to those that need new documentation."""
        return [unit for unit in units if self.has_changed(unit)]

    def delete(self, unit_ids: Iterable[str]) -> int:
        """Remove metadata for the given ids.

        Returns:
            Number of entries removed
        """
        ids = list(unit_ids)
        removed = 0
        with self._transaction() as stored:
            for unit_id in ids:
                if stored.pop(unit_id, None) is not None:
                    removed += 1
        return removed

    def prune_deleted(self, deleted: Iterable[CodeUnit], project_root: Path) -> list[str]:
        """Remove metadata of deleted units whose owning file is gone.

        A unit that disappeared from a file that still exists may just have
        been renamed by the parser, so its entry is kept.

        Args:
            deleted: Units classified as deleted
            project_root: Root that owning file paths are relative to

        Returns:
            Ids whose metadata was removed
        """
        candidates = list(deleted)
        if not candidates:
            return []

        pruned: list[str] = []
        with self._transaction() as stored:
            for unit in candidates:
                existing = stored.get(unit.id)
                file_path = unit.file_path or (existing.file_path if existing else None)
                if not file_path:
                    logger.debug("Keeping %s: owning file unknown", unit.id)
                    continue
                if (project_root / file_path).exists():
                    logger.debug("Keeping %s: %s still exists", unit.id, file_path)
                    continue
                if stored.pop(unit.id, None) is not None:
                    pruned.append(unit.id)

        if pruned:
            logger.info("Pruned metadata for %d units of deleted files", len(pruned))
        return pruned

    def add_doc_reference(self, unit_id: str, doc_path: str) -> bool:
        """Attach a document reference to an existing unit.

        Returns:
            True if the reference was added, False if the unit is unknown or
            already references the document
        """
        self._ensure_loaded()
        if unit_id not in self._units:
            return False

        added = False
        with self._transaction() as stored:
            metadata = stored.get(unit_id)
            if metadata is not None and doc_path not in metadata.doc_references:
                metadata.doc_references.append(doc_path)
                added = True
        return added

    # =========================================================================
    # Content cache
    # =========================================================================

    def _cache_entry(self, key: str) -> Path:
        return self.cache_dir / f"{fingerprint(key)}{CACHE_SUFFIX}"

    def cache_file(self, key: str, content: str) -> None:
        """Store content under ``key`` with the current timestamp.

        No-op when the cache is disabled.
        """
        if not self.enable_cache:
            return
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        entry = {"key": key, "content": content, "timestamp": self._clock().timestamp()}
        self._cache_entry(key).write_text(json.dumps(entry), encoding="utf-8")

    def get_cached_file(self, key: str) -> str | None:
        """Return cached content for ``key`` if present and not expired.

        Expired and unreadable entries are deleted on the way out.
        """
        if not self.enable_cache:
            return None

        entry_path = self._cache_entry(key)
        if not entry_path.exists():
            return None

        try:
            data = json.loads(entry_path.read_text(encoding="utf-8"))
            stored_key = data["key"]
            content = data["content"]
            stored_at = datetime.fromtimestamp(float(data["timestamp"]), UTC)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Discarding unreadable cache entry %s: %s", entry_path, e)
            entry_path.unlink(missing_ok=True)
            return None

        if stored_key != key:
            return None

        if self._clock() - stored_at < self.cache_ttl:
            return content

        logger.debug("Cache entry for %s expired", key)
        entry_path.unlink(missing_ok=True)
        return None

    def _cache_entries(self) -> list[Path]:
        if not self.cache_dir.exists():
            return []
        return sorted(self.cache_dir.glob(f"*{CACHE_SUFFIX}"))

    def clear_cache(self) -> int:
        """Delete every cache entry.

        Returns:
            Number of entries removed
        """
        entries = self._cache_entries()
        for entry in entries:
            entry.unlink(missing_ok=True)
        return len(entries)

    # =========================================================================
    # Maintenance
    # =========================================================================

    def get_statistics(self) -> MetadataStatistics:
        """Summarize stored metadata and cache usage."""
        self._ensure_loaded()
        entries = self._cache_entries()
        return MetadataStatistics(
            total_units=len(self._units),
            documented_units=sum(1 for meta in self._units.values() if meta.summary_ref),
            last_generated=self._last_generated,
            cache_entries=len(entries),
            cache_size=sum(entry.stat().st_size for entry in entries),
        )

    def export_metadata(self, output_path: Path) -> None:
        """Write a copy of the metadata document with an export timestamp."""
        self._ensure_loaded()
        data = self._document()
        data["exportDate"] = self._clock().isoformat()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def import_metadata(self, input_path: Path) -> int:
        """Replace stored metadata with an exported document.

        Returns:
            Number of units imported

        Raises:
            ValueError: If the document cannot be parsed
            MetadataPersistenceError: If it cannot be persisted
        """
        try:
            data = json.loads(input_path.read_text(encoding="utf-8"))
            version, _, units = self._parse_document(data)
        except (OSError, KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Cannot import metadata from {input_path}: {e}") from e

        with self._transaction() as stored:
            stored.clear()
            stored.update(units)
            self._version = version
        logger.info("Imported metadata for %d units from %s", len(units), input_path)
        return len(units)

    def reset(self) -> None:
        """Drop all unit metadata and cache entries."""
        self.clear_cache()
        with self._transaction() as stored:
            stored.clear()
            self._version = FORMAT_VERSION

    @staticmethod
    def file_metadata(path: Path) -> FileMetadata:
        """Hash and stat a single file."""
        stat = path.stat()
        return FileMetadata(
            hash=fingerprint_file(path),
            last_modified=datetime.fromtimestamp(stat.st_mtime, UTC),
            size=stat.st_size,
        )
