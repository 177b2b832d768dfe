"""DocDelta analyzers - dependency flow over parsed module records.

Analyzers:
- Manifest: package.json / pyproject.toml entry and dependency declarations
- Entry Points: Manifest, conventional and framework entry files
- Import Graph: Specifier resolution and module adjacency
- Flow: Cycle-safe traversal and execution order
"""

from docdelta.analyzers.entry_points import EntryPointResolver, resolve_entry_points
from docdelta.analyzers.flow import FlowTraversal, TraversalResult, analyze_flow
from docdelta.analyzers.import_graph import DependencyGraphBuilder, build_dependency_graph
from docdelta.analyzers.manifest import ProjectManifest, identify_structure, load_manifest

__all__ = [
    "DependencyGraphBuilder",
    "EntryPointResolver",
    "FlowTraversal",
    "ProjectManifest",
    "TraversalResult",
    "analyze_flow",
    "build_dependency_graph",
    "identify_structure",
    "load_manifest",
    "resolve_entry_points",
]
