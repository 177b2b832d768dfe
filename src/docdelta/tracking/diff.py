"""Change set computation between two snapshots of code units.

A snapshot maps unit id to CodeUnit. Classification only looks at ids and
content hashes, so it is order-independent and idempotent.
"""

import difflib
import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from docdelta.models.units import ChangeSet, ChangeStatistics, CodeUnit

if TYPE_CHECKING:
    from docdelta.tracking.metadata import MetadataStore

logger = logging.getLogger(__name__)

Snapshot = Mapping[str, CodeUnit]


class ChangeSetComputer:
    """Classifies units as added, modified, deleted or unchanged."""

    def compute(self, previous: Snapshot, current: Snapshot) -> ChangeSet:
        """Partition ``previous ∪ current`` by id.

        - id only in current: added
        - id in both, hashes differ: modified (current unit reported)
        - id in both, hashes equal: unchanged (current unit reported)
        - id only in previous: deleted (previous unit reported)

        Args:
            previous: Snapshot from the last run
            current: Snapshot from this run

        Returns:
            ChangeSet where every id appears in exactly one partition
        """
        change_set = ChangeSet()

        for unit_id, unit in current.items():
            before = previous.get(unit_id)
            if before is None:
                change_set.added.append(unit)
            elif before.hash != unit.hash:
                change_set.modified.append(unit)
            else:
                change_set.unchanged.append(unit)

        for unit_id, unit in previous.items():
            if unit_id not in current:
                change_set.deleted.append(unit)

        logger.debug(
            "Change set: %d added, %d modified, %d deleted, %d unchanged",
            len(change_set.added),
            len(change_set.modified),
            len(change_set.deleted),
            len(change_set.unchanged),
        )
        return change_set

    @staticmethod
    def snapshot(units: Iterable[CodeUnit]) -> dict[str, CodeUnit]:
        """Key units by id. A later unit with a repeated id replaces the earlier one."""
        snapshot: dict[str, CodeUnit] = {}
        for unit in units:
            if unit.id in snapshot:
                logger.warning("Duplicate unit id %s in %s", unit.id, unit.file_path)
            snapshot[unit.id] = unit
        return snapshot

    @staticmethod
    def previous_from_metadata(store: "MetadataStore") -> dict[str, CodeUnit]:
        """Rebuild the last run's snapshot from persisted metadata.

        The content is gone, so each unit is a stub carrying the stored hash
        and owning file.
        """
        return {
            unit_id: CodeUnit(
                id=unit_id,
                file_path=metadata.file_path or "",
                content_hash=metadata.hash,
            )
            for unit_id, metadata in store.items()
        }

    @staticmethod
    def statistics(change_set: ChangeSet) -> ChangeStatistics:
        return change_set.statistics()

    @staticmethod
    def text_diff(old: str, new: str, context_lines: int = 3) -> str:
        """Render a unified line diff between two versions of a unit."""
        lines = difflib.unified_diff(
            old.splitlines(),
            new.splitlines(),
            fromfile="previous",
            tofile="current",
            n=context_lines,
            lineterm="",
        )
        return "\n".join(lines)

    def modified_with_context(
        self,
        previous: Snapshot,
        current: Snapshot,
        context_lines: int = 3,
    ) -> dict[str, str]:
        """Map each modified unit id to a diff of its content.

        Units whose previous content is unknown (metadata stubs) are skipped.
        """
        result: dict[str, str] = {}
        for unit in self.compute(previous, current).modified:
            before = previous[unit.id]
            if not before.content:
                continue
            result[unit.id] = self.text_diff(before.content, unit.content, context_lines)
        return result
