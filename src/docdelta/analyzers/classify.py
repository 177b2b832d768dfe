"""Module classification and descriptive text for flow nodes.

Classification is a naming and content heuristic, applied in priority order:
entry, test, config, component, utility, module (has exports), unknown.
"""

from docdelta.models.flow import ModuleClassification, ModuleNode
from docdelta.models.units import ParsedModule

_COMPONENT_MARKERS = ("React.Component", "useState(", "defineComponent(", "@Component(")
_TEST_DIRS = frozenset({"test", "tests", "__tests__", "spec"})

# Substring of the file stem -> purpose, first match wins
_PURPOSE_BY_NAME = [
    (("route", "router"), "Defines application routes and handles HTTP requests"),
    (("controller",), "Handles business logic and coordinates between models and views"),
    (("model",), "Defines data structures and database interactions"),
    (("service",), "Provides business logic and external service integrations"),
    (("middleware",), "Processes requests before they reach route handlers"),
    (("auth",), "Handles authentication and authorization"),
    (("database", "db"), "Manages database connections and operations"),
    (("api",), "Provides API endpoints and handles external requests"),
]


def classify_module(
    path: str,
    module: ParsedModule | None,
    is_entry_point: bool,
) -> ModuleClassification:
    """Classify a module by its path, role and content.

    Args:
        path: Normalized project-relative path
        module: Parsed record (None for files known only from disk)
        is_entry_point: Whether the path is a resolved entry point
    """
    if is_entry_point:
        return ModuleClassification.ENTRY

    file_name = path.rsplit("/", 1)[-1].lower()
    directory = path.rsplit("/", 1)[0].lower() if "/" in path else ""

    if (
        ".test." in file_name
        or ".spec." in file_name
        or file_name.startswith("test_")
        or file_name.endswith("_test.py")
        or any(part in _TEST_DIRS for part in directory.split("/"))
    ):
        return ModuleClassification.TEST

    if "config" in file_name or "settings" in file_name or file_name.startswith(".env"):
        return ModuleClassification.CONFIG

    if module is not None and any(
        marker in chunk.content for chunk in module.chunks for marker in _COMPONENT_MARKERS
    ):
        return ModuleClassification.COMPONENT

    if any(word in directory or word in file_name for word in ("util", "helper")):
        return ModuleClassification.UTILITY

    if module is not None and module.exports:
        return ModuleClassification.MODULE

    return ModuleClassification.UNKNOWN


def describe_action(node: ModuleNode) -> str:
    """One-line action of a module inside the execution flow."""
    match node.classification:
        case ModuleClassification.ENTRY:
            return "Entry point - Initializes application and imports core modules"
        case ModuleClassification.MODULE:
            return f"Module - Exports {len(node.exports)} items for use by other modules"
        case ModuleClassification.COMPONENT:
            return f"Component - Provides UI component with {len(node.functions)} functions"
        case ModuleClassification.UTILITY:
            return "Utility - Provides helper functions and utilities"
        case ModuleClassification.CONFIG:
            return "Configuration - Defines settings and environment variables"
        case ModuleClassification.TEST:
            return "Test - Contains test cases for validating functionality"
        case _:
            return "File - General purpose module"


def infer_purpose(node: ModuleNode) -> str:
    stem = node.name.rsplit(".", 1)[0].lower()
    for words, purpose in _PURPOSE_BY_NAME:
        if any(word in stem for word in words):
            return purpose
    if len(node.exports) > 5:
        return "Core module providing multiple exports for application functionality"
    return "Supporting module for application functionality"


def describe_module(node: ModuleNode) -> str:
    """Structural description assembled from the node's counts."""
    parts = [f"This {node.classification.value} file is written in {node.language}."]

    if node.is_entry_point:
        parts.append("It serves as an entry point for the application.")
    if node.imports:
        parts.append(f"It imports {len(node.imports)} modules.")
    if node.exports:
        parts.append(f"It exports {len(node.exports)} items.")
    if node.functions:
        parts.append(f"Contains {len(node.functions)} functions.")
    if node.classes:
        parts.append(f"Defines {len(node.classes)} classes.")
    if node.dependencies:
        parts.append(f"Depends on {len(node.dependencies)} other modules.")
    if node.dependents:
        parts.append(f"Used by {len(node.dependents)} other modules.")

    return " ".join(parts)
