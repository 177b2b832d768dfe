"""Incremental analysis pipeline.

Coordinates one run over a project:
1. Precondition: the project root must be an accessible directory (fatal)
2. Complete chunk content from source files (concurrent reads)
3. Classify units against persisted metadata (ChangeSet)
4. Persist new fingerprints and prune units of deleted files
5. Resolve entry points, build the dependency graph and traverse it
6. Annotate graph nodes whose units changed in this run

Component-local problems (one unreadable file, one missing entry point) are
recorded as recoverable AnalysisError entries. Root and persistence failures
propagate as DocDeltaError subclasses.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from docdelta.analyzers.entry_points import EntryPointResolver
from docdelta.analyzers.flow import FlowTraversal
from docdelta.analyzers.import_graph import DependencyGraphBuilder
from docdelta.analyzers.manifest import identify_structure, load_manifest
from docdelta.analyzers.paths import normalize_path
from docdelta.config import DocDeltaConfig
from docdelta.models import AnalysisError, AnalysisResult, AnalysisStatus, Project
from docdelta.models.flow import DependencyGraph
from docdelta.models.units import ChangeSet, ParsedModule
from docdelta.records import fill_missing_content
from docdelta.tracking.diff import ChangeSetComputer
from docdelta.tracking.metadata import MetadataStore
from docdelta.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class PipelineOptions:
    """Options for controlling pipeline execution.

    Attributes:
        dry_run: Compute changes and flow without writing metadata
        skip_flow: Only track changes, skip entry points and traversal
        entry_points: Extra entry files for this run (after configured ones)
    """

    dry_run: bool = False
    skip_flow: bool = False
    entry_points: list[str] = field(default_factory=list)


class AnalysisPipeline:
    """Runs change tracking and dependency flow analysis for a project."""

    def __init__(
        self,
        config: DocDeltaConfig | None = None,
        store: MetadataStore | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: DocDelta configuration (uses defaults if None)
            store: Metadata store (built from config per project if None)
        """
        self.config = config or DocDeltaConfig()
        self.store = store
        self._computer = ChangeSetComputer()

    def run(
        self,
        project: Project,
        modules: list[ParsedModule],
        options: PipelineOptions | None = None,
    ) -> AnalysisResult:
        """Execute one incremental run.

        Args:
            project: Project to analyze
            modules: Module parser records for the project
            options: Pipeline execution options

        Returns:
            AnalysisResult with change set, flow and recoverable errors

        Raises:
            ProjectRootError: If the project root is missing or inaccessible
            MetadataPersistenceError: If metadata cannot be written
        """
        options = options or PipelineOptions()

        for warning in project.validate():
            logger.warning("Project warning: %s", warning)

        result = AnalysisResult(
            project_path=project.path,
            project_name=project.name,
            timestamp=datetime.now(UTC),
            status=AnalysisStatus.RUNNING,
        )
        store = self.store or MetadataStore.from_config(self.config.metadata, project.path)

        logger.info("Starting analysis of %s (%d modules)", project.name, len(modules))

        modules, excluded = self._complete_sources(project, modules, result)
        result.change_set = self._compute_changes(modules, store, excluded)

        if options.dry_run:
            logger.info("Dry run: metadata not written")
        else:
            self._persist(project, result.change_set, store)
            result.persisted = True

        if not options.skip_flow:
            graph = self._run_flow(project, modules, result, options)
            self._annotate_changes(project, graph, result.change_set)

        result.status = (
            AnalysisStatus.COMPLETED_WITH_WARNINGS
            if result.has_errors()
            else AnalysisStatus.COMPLETED
        )

        stats = result.change_set.statistics()
        logger.structured(
            logging.INFO,
            f"Analysis complete: {result.status.value}",
            project=project.name,
            added=stats.added,
            modified=stats.modified,
            deleted=stats.deleted,
            unchanged=stats.unchanged,
            modules=len(result.flow.modules),
            errors=len(result.errors),
        )
        return result

    def _complete_sources(
        self,
        project: Project,
        modules: list[ParsedModule],
        result: AnalysisResult,
    ) -> tuple[list[ParsedModule], set[str]]:
        """Fill missing chunk content; drop modules whose source is unreadable.

        Returns:
            Readable modules and the unit ids of the excluded ones
        """
        logger.info("Stage 1: Reading sources")

        unit_ids = {id(module): [unit.id for unit in module.chunks] for module in modules}
        failures = fill_missing_content(modules, project.path, self.config.scan.workers)
        for file_path, reason in failures.items():
            result.add_error(
                AnalysisError(
                    component="sources",
                    message=f"Unreadable source: {reason}",
                    file_path=file_path,
                )
            )

        if not failures:
            return modules, set()
        kept = [module for module in modules if module.path not in failures]
        excluded = {
            unit_id
            for module in modules
            if module.path in failures
            for unit_id in unit_ids[id(module)]
        }
        return kept, excluded

    def _compute_changes(
        self, modules: list[ParsedModule], store: MetadataStore, excluded: set[str]
    ) -> ChangeSet:
        logger.info("Stage 2: Computing changes")

        current = self._computer.snapshot(unit for module in modules for unit in module.chunks)
        previous = self._computer.previous_from_metadata(store)
        # Units of unreadable files keep their metadata and sit out this run
        for unit_id in excluded - current.keys():
            previous.pop(unit_id, None)
        change_set = self._computer.compute(previous, current)

        stats = change_set.statistics()
        logger.info(
            "Found %d added, %d modified, %d deleted, %d unchanged units",
            stats.added,
            stats.modified,
            stats.deleted,
            stats.unchanged,
        )
        return change_set

    def _persist(self, project: Project, change_set: ChangeSet, store: MetadataStore) -> None:
        logger.info("Stage 3: Persisting metadata")

        if change_set.needs_update:
            store.upsert_batch(change_set.needs_update)
        store.prune_deleted(change_set.deleted, project.path)

    def _run_flow(
        self,
        project: Project,
        modules: list[ParsedModule],
        result: AnalysisResult,
        options: PipelineOptions,
    ) -> DependencyGraph:
        logger.info("Stage 4: Analyzing dependency flow")

        extensions = self.config.scan.extensions
        manifest = load_manifest(project.path)

        resolver = EntryPointResolver(extensions)
        entry_points = resolver.resolve(
            project.path,
            manifest,
            extra=[*self.config.flow.entry_points, *options.entry_points],
        )
        for missing in resolver.missing:
            result.add_error(
                AnalysisError(
                    component="entry_points",
                    message=f"Entry point not found: {missing}",
                    file_path=missing,
                )
            )

        structure = identify_structure(project.path, manifest)
        unreadable = [
            error.file_path
            for error in result.get_errors_by_component("sources")
            if error.file_path
        ]
        graph = DependencyGraphBuilder(project.path, extensions).build(
            modules, entry_points, excluded=unreadable
        )
        flow = FlowTraversal(self.config.flow.max_steps).analyze(graph, entry_points, structure)

        if flow.truncated:
            result.add_error(
                AnalysisError(
                    component="flow",
                    message=(
                        f"Traversal stopped after {len(flow.modules)} modules "
                        f"(max_steps={self.config.flow.max_steps})"
                    ),
                )
            )

        result.flow = flow
        logger.info(
            "Traversed %d of %d modules from %d entry points",
            len(flow.modules),
            len(graph.nodes),
            len(flow.entry_points),
        )
        return graph

    @staticmethod
    def _annotate_changes(project: Project, graph: DependencyGraph, change_set: ChangeSet) -> None:
        for file_path in change_set.changed_files():
            key = normalize_path(project.path, file_path)
            node = graph.nodes.get(key) if key else None
            if node is not None:
                node.changed = True
