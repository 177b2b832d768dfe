"""Best-effort function and class summaries from code unit text.

These are regular-expression heuristics over the unit source, not a parser.
They miss calls made through aliases, dynamic dispatch or nested parentheses
and can report keywords of unfamiliar languages as calls. Treat the output as
hints for documentation, never as a call graph.
"""

import re

from docdelta.models.flow import ClassInfo, FunctionInfo
from docdelta.models.units import CodeUnit

FUNCTION_KINDS = {"function", "method"}
CLASS_KINDS = {"class"}

_PARAMS = re.compile(r"\(([^)]*)\)")
_RETURN_TYPE = re.compile(r"\)\s*(?::|->)\s*([^{:=\n]+)")
_CALL = re.compile(r"\b([A-Za-z_]\w*)\s*\(")
_PROPERTY = re.compile(r"^\s*(?:public|private|protected|readonly|static|\s)*(\w+)\s*[=:]", re.M)
_EXTENDS = re.compile(r"extends\s+([\w.]+)")
_PY_BASES = re.compile(r"^\s*class\s+\w+\s*\(([^)]*)\)")
_IMPLEMENTS = re.compile(r"implements\s+([^{]+)")

_NOT_CALLS = {
    "function",
    "def",
    "if",
    "elif",
    "for",
    "while",
    "switch",
    "catch",
    "return",
    "with",
    "print",
    "super",
    "typeof",
    "await",
    "new",
}


def extract_params(content: str) -> list[str]:
    match = _PARAMS.search(content)
    if not match:
        return []
    return [param.strip() for param in match.group(1).split(",") if param.strip()]


def extract_return_type(content: str) -> str | None:
    header = content.split("\n", 1)[0]
    match = _RETURN_TYPE.search(header)
    if not match:
        return None
    return match.group(1).strip() or None


def extract_calls(content: str) -> list[str]:
    """Names that look like calls in the unit body, first occurrence order."""
    body = content.split("\n", 1)[1] if "\n" in content else ""
    calls: dict[str, None] = {}
    for match in _CALL.finditer(body):
        name = match.group(1)
        if name not in _NOT_CALLS:
            calls.setdefault(name)
    return list(calls)


def extract_functions(units: list[CodeUnit]) -> list[FunctionInfo]:
    """Summarize the function and method units of a module.

    ``called_by`` is filled in from the other functions of the same module.
    """
    functions = [
        FunctionInfo(
            name=unit.name,
            params=extract_params(unit.content),
            return_type=extract_return_type(unit.content),
            calls=extract_calls(unit.content),
        )
        for unit in units
        if unit.kind in FUNCTION_KINDS
    ]

    by_name = {function.name: function for function in functions}
    for function in functions:
        for called in function.calls:
            target = by_name.get(called)
            if target is not None and function.name not in target.called_by:
                target.called_by.append(function.name)

    return functions


def extract_classes(units: list[CodeUnit]) -> list[ClassInfo]:
    """Summarize the class units of a module, attaching their method units."""
    classes: list[ClassInfo] = []
    for unit in units:
        if unit.kind not in CLASS_KINDS:
            continue

        methods = [
            str(other.metadata.get("methodName") or other.name)
            for other in units
            if other.kind == "method" and other.metadata.get("className") == unit.name
        ]

        extends = None
        extends_match = _EXTENDS.search(unit.content) or _PY_BASES.search(unit.content)
        if extends_match:
            extends = extends_match.group(1).split(",")[0].strip() or None

        implements: list[str] = []
        implements_match = _IMPLEMENTS.search(unit.content)
        if implements_match:
            implements = [name.strip() for name in implements_match.group(1).split(",")]

        classes.append(
            ClassInfo(
                name=unit.name,
                methods=methods,
                properties=list(dict.fromkeys(_PROPERTY.findall(unit.content))),
                extends=extends,
                implements=[name for name in implements if name],
            )
        )
    return classes
