"""Import graph construction for dependency flow analysis.

Turns parser records into a node map and a directed adjacency keyed by
normalized project-relative paths. Only intra-project edges are tracked:
bare package imports (``react``, ``os``) are skipped.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from docdelta.analyzers.classify import classify_module
from docdelta.analyzers.paths import join_key, normalize_path, parent_key
from docdelta.analyzers.symbols import extract_classes, extract_functions
from docdelta.config import DEFAULT_EXTENSIONS
from docdelta.models.flow import DependencyGraph, ModuleNode
from docdelta.models.units import ParsedModule

logger = logging.getLogger(__name__)

EXTENSION_LANGUAGES = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".py": "python",
    ".go": "go",
    ".java": "java",
}


def language_for(path: str) -> str:
    """Guess a language from a file extension."""
    suffix = Path(path).suffix.lower()
    return EXTENSION_LANGUAGES.get(suffix, "unknown")


class DependencyGraphBuilder:
    """Builds the module dependency graph from parsed module records.

    Specifiers are resolved against the importing file's directory the way
    a module loader would: the literal path, then each recognized extension
    appended, then an index file inside the path. A candidate exists when
    it is a parsed module or a file on disk; the first existing one wins.
    """

    def __init__(self, project_root: Path, extensions: Iterable[str] | None = None) -> None:
        """Initialize the graph builder.

        Args:
            project_root: Project root used to normalize and probe paths
            extensions: Recognized source extensions, in priority order
        """
        self.project_root = project_root
        self.extensions = list(extensions) if extensions is not None else list(DEFAULT_EXTENSIONS)
        self._parsed: set[str] = set()

    def build(
        self,
        modules: list[ParsedModule],
        entry_points: Iterable[str] = (),
        excluded: Iterable[str] = (),
    ) -> DependencyGraph:
        """Build the node map and adjacency.

        Args:
            modules: Parser records, one per source file
            entry_points: Resolved entry points, used for classification
            excluded: Files left out of the graph entirely, along with
                edges that point at them

        Returns:
            DependencyGraph with one node per module (plus nodes for
            unparsed files that were imported) and adjacency in declared
            import order
        """
        entries = set(entry_points)
        graph = DependencyGraph()
        records: dict[str, ParsedModule] = {}
        skipped = {
            key
            for key in (normalize_path(self.project_root, path) for path in excluded)
            if key is not None
        }

        for module in modules:
            key = normalize_path(self.project_root, module.path)
            if key is None:
                logger.warning(f"Module outside project root skipped: {module.path}")
                continue
            if key in skipped:
                continue
            if key in records:
                logger.debug(f"Duplicate module record ignored: {key}")
                continue
            records[key] = module
            graph.nodes[key] = ModuleNode(
                path=key,
                language=module.language,
                imports=list(module.imports),
                exports=list(module.exports),
            )

        self._parsed = set(records)

        for key, module in records.items():
            targets: list[str] = []
            for specifier in module.imports:
                target = self.resolve_specifier(key, specifier, module.language)
                if target is None or target in skipped:
                    continue
                if target not in graph.nodes:
                    graph.nodes[target] = ModuleNode(path=target, language=language_for(target))
                if target not in targets:
                    targets.append(target)
            graph.adjacency[key] = targets

        for key, node in graph.nodes.items():
            graph.adjacency.setdefault(key, [])
            module = records.get(key)
            node.is_entry_point = key in entries
            node.classification = classify_module(key, module, node.is_entry_point)
            if module is not None:
                node.functions = extract_functions(module.chunks)
                node.classes = extract_classes(module.chunks)

        logger.info(
            f"Built dependency graph with {len(graph.nodes)} nodes and {graph.edge_count} edges"
        )
        return graph

    def resolve_specifier(self, importer: str, specifier: str, language: str) -> str | None:
        """Resolve one import specifier to a project-relative path.

        Args:
            importer: Normalized path of the importing module
            specifier: Import specifier as written
            language: Language of the importing module

        Returns:
            Path of the imported module, or None if it is a package import,
            escapes the project root or does not exist
        """
        spec = specifier.strip()
        if not spec:
            return None

        python = language == "python"

        if spec.startswith(("./", "../")) or spec in (".", ".."):
            base = join_key(parent_key(importer), spec)
        elif spec.startswith("/"):
            base = join_key("", spec.lstrip("/"))
        elif python and spec.startswith("."):
            base = self._python_relative_base(importer, spec)
        else:
            logger.debug(f"Skipping package import {spec!r} in {importer}")
            return None

        if base is None:
            logger.debug(f"Import {spec!r} in {importer} escapes the project root")
            return None

        for candidate in self._candidates(base, python):
            if candidate in self._parsed or (self.project_root / candidate).is_file():
                return candidate

        logger.debug(f"Unresolved import {spec!r} in {importer}")
        return None

    def _candidates(self, base: str, python: bool) -> list[str]:
        index = "__init__" if python else "index"
        prefix = f"{base}/" if base else ""
        candidates = [base] if base else []
        if base:
            candidates.extend(f"{base}{ext}" for ext in self.extensions)
        candidates.extend(f"{prefix}{index}{ext}" for ext in self.extensions)
        return candidates

    @staticmethod
    def _python_relative_base(importer: str, specifier: str) -> str | None:
        """Map ``.mod`` / ``..pkg.mod`` onto a path.

        One dot is the importer's package, each further dot one level up.
        """
        level = len(specifier) - len(specifier.lstrip("."))
        directory = parent_key(importer)
        for _ in range(level - 1):
            if not directory:
                return None
            directory = parent_key(directory)

        rest = specifier[level:].replace(".", "/")
        if not rest:
            return directory
        return join_key(directory, rest)


def build_dependency_graph(
    project_root: Path,
    modules: list[ParsedModule],
    entry_points: Iterable[str] = (),
    extensions: Iterable[str] | None = None,
) -> DependencyGraph:
    """Build a dependency graph from parser records.

    Convenience function for graph construction.

    Args:
        project_root: Project root directory
        modules: Parser records
        entry_points: Resolved entry points
        extensions: Recognized source extensions

    Returns:
        DependencyGraph keyed by project-relative path
    """
    return DependencyGraphBuilder(project_root, extensions).build(modules, entry_points)
