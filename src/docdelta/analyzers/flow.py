"""Dependency flow traversal.

Walks the dependency graph depth-first from the entry points and produces:
- back-links (``dependencies``/``dependents``) for every edge crossed
- a depth for each reached module (distance from the first entry to reach it)
- the execution flow: one step per module, in first-visit order

The walk uses an explicit stack and reproduces recursive preorder exactly,
so deep import chains cannot exhaust the interpreter stack. Cycles end at
the visited check.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from docdelta.analyzers.classify import describe_action, describe_module, infer_purpose
from docdelta.analyzers.import_graph import DependencyGraphBuilder
from docdelta.models.flow import (
    DependencyGraph,
    ExecutionStep,
    ModuleNode,
    ProjectFlow,
    ProjectStructure,
)
from docdelta.models.units import ParsedModule

logger = logging.getLogger(__name__)


@dataclass
class TraversalResult:
    """Output of a single traversal.

    Attributes:
        entry_nodes: Entry nodes found in the node map, in resolution order
        ordered_nodes: Visited nodes in visitation order
        execution_flow: One step per visited node
        truncated: True when the step budget stopped the walk
    """

    entry_nodes: list[ModuleNode] = field(default_factory=list)
    ordered_nodes: list[ModuleNode] = field(default_factory=list)
    execution_flow: list[ExecutionStep] = field(default_factory=list)
    truncated: bool = False


class FlowTraversal:
    """Depth-first, cycle-safe traversal of a dependency graph."""

    def __init__(self, max_steps: int | None = None) -> None:
        """Initialize the traversal.

        Args:
            max_steps: Stop after this many visited modules (None for no limit)
        """
        self.max_steps = max_steps

    def traverse(
        self,
        entry_points: Iterable[str],
        nodes: Mapping[str, ModuleNode],
        adjacency: Mapping[str, list[str]],
    ) -> TraversalResult:
        """Visit every module reachable from the entry points exactly once.

        Entry points are walked in the given order. Crossing an edge links
        both endpoints even when the target was already visited; only the
        first visit of a module assigns its depth and adds a step.

        Args:
            entry_points: Entry point paths in resolution order
            nodes: Node map (modified in place)
            adjacency: Importer path -> imported paths in declared order

        Returns:
            TraversalResult
        """
        result = TraversalResult()
        visited: set[str] = set()
        stack: list[tuple[str, Iterator[str]]] = []

        def enter(path: str, depth: int) -> None:
            node = nodes[path]
            node.depth = depth
            visited.add(path)
            result.ordered_nodes.append(node)
            result.execution_flow.append(
                ExecutionStep(
                    order=len(result.execution_flow),
                    module_path=path,
                    triggers=self._triggers(path, nodes, adjacency),
                    action=describe_action(node),
                    imports=list(node.imports),
                    exports=list(node.exports),
                )
            )
            stack.append((path, iter(adjacency.get(path, []))))

        for entry in entry_points:
            node = nodes.get(entry)
            if node is None:
                logger.warning(f"Entry point not in dependency graph: {entry}")
                continue

            node.is_entry_point = True
            if node not in result.entry_nodes:
                result.entry_nodes.append(node)

            if entry in visited or result.truncated:
                continue
            if self._budget_spent(visited):
                result.truncated = True
                continue

            enter(entry, 0)
            while stack:
                source, targets = stack[-1]
                target = next(targets, None)
                if target is None:
                    stack.pop()
                    continue
                if target not in nodes:
                    continue

                self._link(nodes[source], nodes[target])
                if target in visited:
                    continue
                if self._budget_spent(visited):
                    result.truncated = True
                    stack.clear()
                    break
                enter(target, nodes[source].depth + 1)

        if result.truncated:
            logger.warning(
                f"Flow traversal stopped after {len(visited)} modules (max_steps={self.max_steps})"
            )
        logger.debug(
            f"Traversed {len(result.ordered_nodes)} modules from {len(result.entry_nodes)} entry points"
        )
        return result

    def analyze(
        self,
        graph: DependencyGraph,
        entry_points: Iterable[str],
        structure: ProjectStructure | None = None,
    ) -> ProjectFlow:
        """Traverse a graph and assemble the project flow.

        Visited modules get a purpose and a structural description once
        all of their links are known.

        Args:
            graph: Graph from DependencyGraphBuilder
            entry_points: Entry point paths in resolution order
            structure: Project layout facts to attach

        Returns:
            ProjectFlow
        """
        entry_points = list(entry_points)
        result = self.traverse(entry_points, graph.nodes, graph.adjacency)

        for node in result.ordered_nodes:
            node.purpose = infer_purpose(node)
            node.description = describe_module(node)

        if structure is not None:
            structure.entry_files = [node.path for node in result.entry_nodes]
            structure.module_count = len(graph.nodes)
            structure.languages = sorted(
                {node.language for node in graph.nodes.values() if node.language != "unknown"}
            )

        return ProjectFlow(
            entry_points=result.entry_nodes,
            modules={node.path: node for node in result.ordered_nodes},
            dependency_graph={path: set(targets) for path, targets in graph.adjacency.items()},
            execution_flow=result.execution_flow,
            structure=structure,
            truncated=result.truncated,
        )

    def _budget_spent(self, visited: set[str]) -> bool:
        return self.max_steps is not None and len(visited) >= self.max_steps

    @staticmethod
    def _link(source: ModuleNode, target: ModuleNode) -> None:
        if target.path not in source.dependencies:
            source.dependencies.append(target.path)
        if source.path not in target.dependents:
            target.dependents.append(source.path)

    @staticmethod
    def _triggers(
        path: str,
        nodes: Mapping[str, ModuleNode],
        adjacency: Mapping[str, list[str]],
    ) -> list[str]:
        triggers: list[str] = []
        for target in adjacency.get(path, []):
            if target in nodes and target not in triggers:
                triggers.append(target)
        return triggers


def analyze_flow(
    project_root: Path,
    modules: list[ParsedModule],
    entry_points: Iterable[str],
    extensions: Iterable[str] | None = None,
    max_steps: int | None = None,
    structure: ProjectStructure | None = None,
) -> ProjectFlow:
    """Build the dependency graph and traverse it.

    Convenience function chaining DependencyGraphBuilder and FlowTraversal.

    Args:
        project_root: Project root directory
        modules: Parser records
        entry_points: Resolved entry points in resolution order
        extensions: Recognized source extensions
        max_steps: Optional traversal budget
        structure: Project layout facts to attach

    Returns:
        ProjectFlow
    """
    entry_points = list(entry_points)
    graph = DependencyGraphBuilder(project_root, extensions).build(modules, entry_points)
    return FlowTraversal(max_steps).analyze(graph, entry_points, structure)
