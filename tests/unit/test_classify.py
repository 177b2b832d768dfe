"""Unit tests for module classification and symbol summaries."""

import pytest

from docdelta.analyzers.classify import (
    classify_module,
    describe_action,
    describe_module,
    infer_purpose,
)
from docdelta.analyzers.symbols import (
    extract_calls,
    extract_classes,
    extract_functions,
    extract_params,
    extract_return_type,
)
from docdelta.models import CodeUnit, ModuleClassification, ModuleNode, ParsedModule


def _unit(name: str, content: str, kind: str = "function", **metadata: str) -> CodeUnit:
    return CodeUnit(
        id=f"mod:{name}",
        file_path="mod.ts",
        content=content,
        kind=kind,
        metadata={"name": name, **metadata},
    )


class TestClassifyModule:
    """Tests for classify_module()."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("src/app.test.ts", ModuleClassification.TEST),
            ("src/app.spec.js", ModuleClassification.TEST),
            ("pkg/test_models.py", ModuleClassification.TEST),
            ("pkg/models_test.py", ModuleClassification.TEST),
            ("__tests__/app.js", ModuleClassification.TEST),
            ("pkg/tests/unit/models.py", ModuleClassification.TEST),
            ("spec/app.js", ModuleClassification.TEST),
            ("src/latest/feed.js", ModuleClassification.UNKNOWN),
            ("contest/entries.js", ModuleClassification.UNKNOWN),
            ("src/config.ts", ModuleClassification.CONFIG),
            ("app/settings.py", ModuleClassification.CONFIG),
            ("src/utils/date.ts", ModuleClassification.UTILITY),
            ("src/stringHelpers.js", ModuleClassification.UTILITY),
            ("src/plain.js", ModuleClassification.UNKNOWN),
        ],
    )
    def test_path_rules(self, path: str, expected: ModuleClassification) -> None:
        """Test classification from path alone."""
        assert classify_module(path, None, False) == expected

    def test_entry_wins(self) -> None:
        """Test that entry points are entries regardless of name."""
        assert classify_module("src/config.test.js", None, True) == ModuleClassification.ENTRY

    def test_test_before_config(self) -> None:
        """Test priority of test over config."""
        assert classify_module("src/config.test.js", None, False) == ModuleClassification.TEST

    def test_component_from_content(self) -> None:
        """Test component detection from unit content."""
        module = ParsedModule(
            path="src/utils/Widget.ts",
            chunks=[_unit("Widget", "export default defineComponent({\n})")],
        )

        assert (
            classify_module("src/utils/Widget.ts", module, False)
            == ModuleClassification.COMPONENT
        )

    def test_module_needs_exports(self) -> None:
        """Test that exporting modules are plain modules."""
        with_exports = ParsedModule(path="src/api.ts", exports=["get"])
        without = ParsedModule(path="src/api.ts")

        assert classify_module("src/api.ts", with_exports, False) == ModuleClassification.MODULE
        assert classify_module("src/api.ts", without, False) == ModuleClassification.UNKNOWN


class TestDescriptions:
    """Tests for describe_action(), infer_purpose() and describe_module()."""

    def test_actions(self) -> None:
        """Test one-line actions per classification."""
        node = ModuleNode(path="a.js", exports=["x", "y"])

        node.classification = ModuleClassification.MODULE
        assert describe_action(node) == "Module - Exports 2 items for use by other modules"
        node.classification = ModuleClassification.ENTRY
        assert describe_action(node).startswith("Entry point")
        node.classification = ModuleClassification.UNKNOWN
        assert describe_action(node) == "File - General purpose module"

    @pytest.mark.parametrize(
        ("path", "exports", "expected"),
        [
            ("src/userController.js", 0, "Handles business logic"),
            ("src/authMiddleware.js", 0, "Processes requests"),
            ("lib/db.py", 0, "Manages database"),
            ("src/everything.js", 6, "Core module"),
            ("src/misc.js", 1, "Supporting module"),
        ],
    )
    def test_purpose(self, path: str, exports: int, expected: str) -> None:
        """Test purpose inferred from the file name."""
        node = ModuleNode(path=path, exports=[f"e{i}" for i in range(exports)])

        assert infer_purpose(node).startswith(expected)

    def test_description_counts(self) -> None:
        """Test the structural description."""
        node = ModuleNode(
            path="src/index.ts",
            language="typescript",
            imports=["./a", "./b"],
            dependencies=["src/a.ts"],
            is_entry_point=True,
            classification=ModuleClassification.ENTRY,
        )

        assert describe_module(node) == (
            "This entry file is written in typescript. "
            "It serves as an entry point for the application. "
            "It imports 2 modules. "
            "Depends on 1 other modules."
        )


class TestSymbolExtraction:
    """Tests for the function and class heuristics."""

    def test_params_and_return_types(self) -> None:
        """Test parameter and return type extraction."""
        assert extract_params("function f(a, b = 2) {") == ["a", "b = 2"]
        assert extract_params("const x = 1") == []
        assert extract_return_type("def load(path: str) -> dict:\n    pass") == "dict"
        assert extract_return_type("function f(a): Promise<User> {\n}") == "Promise<User>"
        assert extract_return_type("function f(a) {\n}") is None

    def test_calls_skip_keywords_and_header(self) -> None:
        """Test call extraction from the body only."""
        content = (
            "function outer(a) {\n"
            "  if (a) { return inner(a); }\n"
            "  for (const x of list()) { inner(x); }\n"
            "}"
        )

        assert extract_calls(content) == ["inner", "list"]
        assert extract_calls("single_line()") == []

    def test_called_by_within_module(self) -> None:
        """Test reverse call links between functions of one module."""
        functions = extract_functions(
            [
                _unit("main", "function main() {\n  helper();\n  other();\n}"),
                _unit("helper", "function helper() {\n  return 1;\n}"),
                _unit("Klass", "class Klass {\n}", kind="class"),
            ]
        )

        by_name = {function.name: function for function in functions}
        assert set(by_name) == {"main", "helper"}
        assert by_name["helper"].called_by == ["main"]
        assert by_name["main"].calls == ["helper", "other"]

    def test_python_class_bases(self) -> None:
        """Test base classes from a Python class header."""
        classes = extract_classes(
            [_unit("Store", "class Store(Base, Mixin):\n    path = None\n", kind="class")]
        )

        assert classes[0].extends == "Base"
        assert "path" in classes[0].properties

    def test_implements(self) -> None:
        """Test implemented interfaces."""
        classes = extract_classes(
            [
                _unit(
                    "Repo",
                    "class Repo extends Base implements Reader, Writer {\n}",
                    kind="class",
                )
            ]
        )

        assert classes[0].extends == "Base"
        assert classes[0].implements == ["Reader", "Writer"]

    def test_methods_attached_by_class_name(self) -> None:
        """Test that method units attach to their class only."""
        classes = extract_classes(
            [
                _unit("A", "class A {\n}", kind="class"),
                _unit("B", "class B {\n}", kind="class"),
                _unit("run", "run() {\n}", kind="method", className="A", methodName="run"),
            ]
        )

        assert classes[0].methods == ["run"]
        assert classes[1].methods == []
