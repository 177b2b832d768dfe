"""Dependency flow models.

The node map owns every ModuleNode. Edges are kept as project-relative paths
(``dependencies``/``dependents``), never as object references, so cyclic
graphs stay plain data that can be compared, printed and serialized.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ModuleClassification(Enum):
    """Role of a module inside the project."""

    ENTRY = "entry"
    MODULE = "module"
    COMPONENT = "component"
    UTILITY = "utility"
    CONFIG = "config"
    TEST = "test"
    UNKNOWN = "unknown"


@dataclass
class FunctionInfo:
    """Best-effort function summary extracted from a code unit.

    Attributes:
        name: Function or method name
        params: Parameter list as written
        return_type: Annotated return type, if one was found
        calls: Names called from the body (regex heuristic, may miss calls)
        called_by: Names of functions calling this one
    """

    name: str
    params: list[str] = field(default_factory=list)
    return_type: str | None = None
    calls: list[str] = field(default_factory=list)
    called_by: list[str] = field(default_factory=list)


@dataclass
class ClassInfo:
    """Best-effort class summary extracted from a code unit."""

    name: str
    methods: list[str] = field(default_factory=list)
    properties: list[str] = field(default_factory=list)
    extends: str | None = None
    implements: list[str] = field(default_factory=list)


@dataclass
class ModuleNode:
    """Per-file graph entity.

    Attributes:
        path: Normalized project-relative path (POSIX separators)
        language: Source language
        imports: Import specifiers as declared by the parser
        exports: Exported names
        dependencies: Paths of modules this one imports
        dependents: Paths of modules importing this one
        depth: Distance from the entry point that first reached it (-1 if unvisited)
        is_entry_point: Whether the module is a resolved entry point
        classification: Role of the module
        functions: Best-effort function summaries
        classes: Best-effort class summaries
        purpose: Short inferred purpose
        description: One-paragraph structural description
        changed: Whether any of the module's units changed in this run
    """

    path: str
    language: str = "unknown"
    imports: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    dependents: list[str] = field(default_factory=list)
    depth: int = -1
    is_entry_point: bool = False
    classification: ModuleClassification = ModuleClassification.UNKNOWN
    functions: list[FunctionInfo] = field(default_factory=list)
    classes: list[ClassInfo] = field(default_factory=list)
    purpose: str | None = None
    description: str | None = None
    changed: bool = False

    @property
    def name(self) -> str:
        """File name without directories."""
        return self.path.rsplit("/", 1)[-1]

    @property
    def visited(self) -> bool:
        return self.depth >= 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "path": self.path,
            "language": self.language,
            "classification": self.classification.value,
            "isEntryPoint": self.is_entry_point,
            "depth": self.depth,
            "imports": self.imports,
            "exports": self.exports,
            "dependencies": self.dependencies,
            "dependents": self.dependents,
            "functions": [f.name for f in self.functions],
            "classes": [c.name for c in self.classes],
            "purpose": self.purpose,
            "description": self.description,
            "changed": self.changed,
        }


@dataclass
class ExecutionStep:
    """One step of the linear execution flow.

    Attributes:
        order: Position in the flow (unique, strictly increasing)
        module_path: Module visited at this step
        triggers: Modules this step leads to, in declared import order
        action: Short description of what the module does in the flow
        imports: Import specifiers of the module
        exports: Exported names of the module
    """

    order: int
    module_path: str
    triggers: list[str] = field(default_factory=list)
    action: str = ""
    imports: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "order": self.order,
            "modulePath": self.module_path,
            "triggers": self.triggers,
            "action": self.action,
        }


@dataclass
class ProjectStructure:
    """Layout facts about the analyzed project.

    Attributes:
        root_dir: Absolute project root
        src_dir: Conventional source directory, if present
        test_dir: Conventional test directory, if present
        config_files: Project-relative configuration files
        entry_files: Resolved entry points
        module_count: Number of modules in the graph
        languages: Languages seen in the parsed modules
        package_manager: npm, yarn, pnpm, poetry, uv, ...
        framework: Detected framework name
    """

    root_dir: str
    src_dir: str | None = None
    test_dir: str | None = None
    config_files: list[str] = field(default_factory=list)
    entry_files: list[str] = field(default_factory=list)
    module_count: int = 0
    languages: list[str] = field(default_factory=list)
    package_manager: str | None = None
    framework: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "rootDir": self.root_dir,
            "srcDir": self.src_dir,
            "testDir": self.test_dir,
            "configFiles": self.config_files,
            "entryFiles": self.entry_files,
            "moduleCount": self.module_count,
            "languages": self.languages,
            "packageManager": self.package_manager,
            "framework": self.framework,
        }


@dataclass
class DependencyGraph:
    """Node map plus directed adjacency, keyed by normalized path.

    Attributes:
        nodes: Every module of the run; sole owner of ModuleNode objects
        adjacency: Importer path -> imported paths, in declared order
    """

    nodes: dict[str, ModuleNode] = field(default_factory=dict)
    adjacency: dict[str, list[str]] = field(default_factory=dict)

    @property
    def edge_count(self) -> int:
        return sum(len(set(targets)) for targets in self.adjacency.values())


@dataclass
class ProjectFlow:
    """Traversal output handed to documentation assembly.

    Attributes:
        entry_points: Entry nodes in resolution order
        modules: Visited nodes in visitation order
        dependency_graph: Importer path -> set of imported paths
        execution_flow: Linear, cycle-safe visitation order
        structure: Project layout facts
        truncated: True when a step budget stopped the traversal early
    """

    entry_points: list[ModuleNode] = field(default_factory=list)
    modules: dict[str, ModuleNode] = field(default_factory=dict)
    dependency_graph: dict[str, set[str]] = field(default_factory=dict)
    execution_flow: list[ExecutionStep] = field(default_factory=list)
    structure: ProjectStructure | None = None
    truncated: bool = False

    def dependencies_of(self, path: str) -> list[ModuleNode]:
        """Resolve a module's dependency paths to nodes."""
        node = self.modules.get(path)
        if node is None:
            return []
        return [self.modules[p] for p in node.dependencies if p in self.modules]

    def dependents_of(self, path: str) -> list[ModuleNode]:
        """Resolve a module's dependent paths to nodes."""
        node = self.modules.get(path)
        if node is None:
            return []
        return [self.modules[p] for p in node.dependents if p in self.modules]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "entryPoints": [node.path for node in self.entry_points],
            "modules": {path: node.to_dict() for path, node in self.modules.items()},
            "dependencyGraph": {
                path: sorted(targets) for path, targets in self.dependency_graph.items()
            },
            "executionFlow": [step.to_dict() for step in self.execution_flow],
            "structure": self.structure.to_dict() if self.structure else None,
            "truncated": self.truncated,
        }
