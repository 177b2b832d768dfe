"""Unit tests for dependency graph construction."""

from pathlib import Path
from typing import Any

import pytest

from docdelta.analyzers.import_graph import (
    DependencyGraphBuilder,
    build_dependency_graph,
    language_for,
)
from docdelta.models import CodeUnit, ModuleClassification


def _touch(root: Path, *paths: str) -> None:
    for rel in paths:
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("", encoding="utf-8")


class TestDependencyGraphBuilder:
    """Tests for DependencyGraphBuilder.build()."""

    @pytest.fixture
    def builder(self, tmp_path: Path) -> DependencyGraphBuilder:
        """Create a builder rooted at a temporary project."""
        return DependencyGraphBuilder(tmp_path)

    def test_missing_import_has_no_edge(
        self, builder: DependencyGraphBuilder, make_module: Any
    ) -> None:
        """Test that importing a file that does not exist adds no edge."""
        graph = builder.build([make_module("a.js", imports=["./b"])])

        assert graph.adjacency["a.js"] == []
        assert set(graph.nodes) == {"a.js"}

    def test_resolves_parsed_modules(
        self, builder: DependencyGraphBuilder, make_module: Any
    ) -> None:
        """Test resolution against parsed records without files on disk."""
        graph = builder.build(
            [
                make_module("src/a.ts", imports=["./b", "../lib/c"]),
                make_module("src/b.ts"),
                make_module("lib/c.tsx"),
            ]
        )

        assert graph.adjacency["src/a.ts"] == ["src/b.ts", "lib/c.tsx"]
        assert graph.adjacency["src/b.ts"] == []

    def test_resolution_order(
        self, builder: DependencyGraphBuilder, make_module: Any, tmp_path: Path
    ) -> None:
        """Test literal path, then extensions, then index file."""
        _touch(tmp_path, "lit.json", "ext.ts", "ext.js", "dir/index.js")

        graph = builder.build([make_module("main.js", imports=["./lit.json", "./ext", "./dir"])])

        assert graph.adjacency["main.js"] == ["lit.json", "ext.ts", "dir/index.js"]

    def test_unparsed_file_gets_bare_node(
        self, builder: DependencyGraphBuilder, make_module: Any, tmp_path: Path
    ) -> None:
        """Test that an imported file known only from disk becomes a node."""
        _touch(tmp_path, "src/util.py")

        graph = builder.build([make_module("src/app.js", imports=["./util"])])

        assert graph.adjacency["src/app.js"] == ["src/util.py"]
        assert graph.nodes["src/util.py"].language == "python"
        assert graph.adjacency["src/util.py"] == []

    def test_excluded_files_left_out(
        self, builder: DependencyGraphBuilder, make_module: Any, tmp_path: Path
    ) -> None:
        """Test that excluded files get no node and no incoming edge."""
        _touch(tmp_path, "src/a.js", "src/b.js")

        graph = builder.build(
            [
                make_module("src/index.js", imports=["./a", "./b"]),
                make_module("src/a.js"),
            ],
            excluded=["./src/a.js", str(tmp_path / "src" / "b.js")],
        )

        assert set(graph.nodes) == {"src/index.js"}
        assert graph.adjacency["src/index.js"] == []

    def test_bare_imports_skipped(
        self, builder: DependencyGraphBuilder, make_module: Any
    ) -> None:
        """Test that package imports are not edges."""
        graph = builder.build(
            [make_module("a.js", imports=["react", "@scope/pkg", "node:fs"]), make_module("react.js")]
        )

        assert graph.adjacency["a.js"] == []

    def test_root_escape_dropped(
        self, builder: DependencyGraphBuilder, make_module: Any
    ) -> None:
        """Test that specifiers leaving the project root are dropped."""
        graph = builder.build([make_module("a.js", imports=["../../outside"])])

        assert graph.adjacency["a.js"] == []

    def test_root_anchored_specifier(
        self, builder: DependencyGraphBuilder, make_module: Any
    ) -> None:
        """Test that a leading slash resolves from the project root."""
        graph = builder.build(
            [make_module("deep/nested/a.js", imports=["/shared/b"]), make_module("shared/b.js")]
        )

        assert graph.adjacency["deep/nested/a.js"] == ["shared/b.js"]

    def test_cycle_and_self_import(
        self, builder: DependencyGraphBuilder, make_module: Any
    ) -> None:
        """Test that cycles and self-imports are kept in the adjacency."""
        graph = builder.build(
            [
                make_module("x.js", imports=["./y", "./x"]),
                make_module("y.js", imports=["./x"]),
            ]
        )

        assert graph.adjacency["x.js"] == ["y.js", "x.js"]
        assert graph.adjacency["y.js"] == ["x.js"]

    def test_duplicate_specifiers_deduplicated(
        self, builder: DependencyGraphBuilder, make_module: Any
    ) -> None:
        """Test that repeated imports of one module give one edge."""
        graph = builder.build(
            [make_module("a.js", imports=["./b", "./b.js", "./b"]), make_module("b.js")]
        )

        assert graph.adjacency["a.js"] == ["b.js"]
        assert graph.edge_count == 1

    def test_absolute_module_paths_normalized(
        self, builder: DependencyGraphBuilder, make_module: Any, tmp_path: Path
    ) -> None:
        """Test that absolute record paths become project-relative keys."""
        graph = builder.build(
            [
                make_module(str(tmp_path / "src" / "a.js"), imports=["./b"]),
                make_module(str(tmp_path / "src" / "b.js")),
            ]
        )

        assert graph.adjacency["src/a.js"] == ["src/b.js"]

    def test_module_outside_root_skipped(
        self, builder: DependencyGraphBuilder, make_module: Any, tmp_path: Path
    ) -> None:
        """Test that records outside the root get no node."""
        graph = builder.build([make_module(str(tmp_path.parent / "elsewhere.js"))])

        assert graph.nodes == {}

    def test_duplicate_records_first_wins(
        self, builder: DependencyGraphBuilder, make_module: Any
    ) -> None:
        """Test that a repeated module path keeps the first record."""
        graph = builder.build(
            [make_module("a.js", exports=["first"]), make_module("./a.js", exports=["second"])]
        )

        assert graph.nodes["a.js"].exports == ["first"]

    def test_empty_input(self, builder: DependencyGraphBuilder) -> None:
        """Test building from no records."""
        graph = builder.build([])

        assert graph.nodes == {}
        assert graph.adjacency == {}


class TestPythonRelativeImports:
    """Tests for dotted relative specifiers in Python modules."""

    @pytest.fixture
    def modules(self, make_module: Any) -> list[Any]:
        """Python package layout as parser records."""
        return [
            make_module(
                "pkg/sub/mod.py",
                language="python",
                imports=[".sibling", "..helpers", "..", ".", "os.path"],
            ),
            make_module("pkg/sub/sibling.py", language="python"),
            make_module("pkg/sub/__init__.py", language="python"),
            make_module("pkg/helpers.py", language="python"),
            make_module("pkg/__init__.py", language="python"),
        ]

    def test_dotted_relative(self, tmp_path: Path, modules: list[Any]) -> None:
        """Test one dot for the package and one more per level up."""
        graph = DependencyGraphBuilder(tmp_path).build(modules)

        assert graph.adjacency["pkg/sub/mod.py"] == [
            "pkg/sub/sibling.py",
            "pkg/helpers.py",
            "pkg/__init__.py",
            "pkg/sub/__init__.py",
        ]

    def test_too_many_dots(self, tmp_path: Path, make_module: Any) -> None:
        """Test that relative imports above the root are dropped."""
        graph = DependencyGraphBuilder(tmp_path).build(
            [make_module("top.py", language="python", imports=["...x"])]
        )

        assert graph.adjacency["top.py"] == []

    def test_dotted_specifier_ignored_for_javascript(
        self, tmp_path: Path, make_module: Any
    ) -> None:
        """Test that Python-style specifiers are not resolved for other languages."""
        graph = DependencyGraphBuilder(tmp_path).build(
            [make_module("a.js", imports=[".b"]), make_module("b.js")]
        )

        assert graph.adjacency["a.js"] == []


class TestNodeEnrichment:
    """Tests for classification and symbol summaries on nodes."""

    def test_classification(self, tmp_path: Path, make_module: Any) -> None:
        """Test node classification from path, role and content."""
        component = CodeUnit(
            id="Button",
            file_path="src/Button.jsx",
            content="function Button() {\n  const [on, setOn] = useState(false);\n}",
            kind="function",
            metadata={"name": "Button"},
        )
        graph = build_dependency_graph(
            tmp_path,
            [
                make_module("src/index.js"),
                make_module("src/app.spec.js"),
                make_module("src/config.js"),
                make_module("src/Button.jsx", chunks=[component]),
                make_module("src/utils/format.js", exports=["format"]),
                make_module("src/api.js", exports=["get"]),
                make_module("README.md"),
            ],
            entry_points=["src/index.js"],
        )

        kinds = {path: node.classification for path, node in graph.nodes.items()}
        assert kinds == {
            "src/index.js": ModuleClassification.ENTRY,
            "src/app.spec.js": ModuleClassification.TEST,
            "src/config.js": ModuleClassification.CONFIG,
            "src/Button.jsx": ModuleClassification.COMPONENT,
            "src/utils/format.js": ModuleClassification.UTILITY,
            "src/api.js": ModuleClassification.MODULE,
            "README.md": ModuleClassification.UNKNOWN,
        }
        assert graph.nodes["src/index.js"].is_entry_point

    def test_functions_and_classes(self, tmp_path: Path, make_module: Any) -> None:
        """Test best-effort symbol summaries."""
        chunks = [
            CodeUnit(
                id="svc",
                file_path="svc.ts",
                content="class UserService extends Base {\n  name = 'x';\n}",
                kind="class",
                metadata={"name": "UserService"},
            ),
            CodeUnit(
                id="svc.get",
                file_path="svc.ts",
                content="getUser(id: string): User {\n  return load(id);\n}",
                kind="method",
                metadata={"name": "getUser", "className": "UserService", "methodName": "getUser"},
            ),
        ]

        graph = build_dependency_graph(tmp_path, [make_module("svc.ts", chunks=chunks)])
        node = graph.nodes["svc.ts"]

        assert [f.name for f in node.functions] == ["getUser"]
        assert node.functions[0].params == ["id: string"]
        assert node.functions[0].return_type == "User"
        assert node.functions[0].calls == ["load"]
        assert node.classes[0].name == "UserService"
        assert node.classes[0].methods == ["getUser"]
        assert node.classes[0].extends == "Base"


class TestLanguageFor:
    """Tests for extension-based language guessing."""

    @pytest.mark.parametrize(
        ("path", "language"),
        [
            ("a.ts", "typescript"),
            ("a.TSX", "typescript"),
            ("a.mjs", "javascript"),
            ("a.py", "python"),
            ("Makefile", "unknown"),
        ],
    )
    def test_language_for(self, path: str, language: str) -> None:
        """Test language guesses."""
        assert language_for(path) == language
