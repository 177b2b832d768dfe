"""Loading of module parser output.

The module parser is an external collaborator. Its output is one JSON or
YAML document, either a list of module records or ``{"modules": [...]}``:

    {
      "path": "src/app.ts",
      "language": "typescript",
      "imports": ["./utils/helpers", "react"],
      "exports": ["App"],
      "chunks": [
        {"id": "src/app.ts:App", "filePath": "src/app.ts", "content": "...",
         "startLine": 3, "endLine": 20, "type": "function",
         "dependencies": [], "metadata": {"name": "App"}}
      ]
    }

Chunks may omit ``content``; it is then filled from the source file lines
``startLine..endLine`` by ``fill_missing_content``.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from docdelta.errors import RecordFormatError
from docdelta.models.units import CodeUnit, ParsedModule
from docdelta.tracking.fingerprint import DEFAULT_WORKERS, fingerprint, read_sources

logger = logging.getLogger(__name__)


def load_parsed_modules(path: Path) -> list[ParsedModule]:
    """Load module records from a JSON or YAML file.

    Args:
        path: Records document (``.json``, ``.yaml`` or ``.yml``)

    Returns:
        Parsed modules in document order

    Raises:
        RecordFormatError: If the file cannot be read or has the wrong shape
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RecordFormatError(str(path), f"cannot read file: {e}") from e

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise RecordFormatError(str(path), str(e)) from e

    modules = parse_records(data, source=str(path))
    logger.debug(f"Loaded {len(modules)} module records from {path}")
    return modules


def parse_records(data: Any, source: str = "<records>") -> list[ParsedModule]:
    """Convert a decoded records document into ParsedModule objects.

    Raises:
        RecordFormatError: If the document has the wrong shape
    """
    if isinstance(data, dict):
        data = data.get("modules")
    if not isinstance(data, list):
        raise RecordFormatError(source, "expected a list of modules or a 'modules' key")

    modules: list[ParsedModule] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict) or not item.get("path"):
            raise RecordFormatError(source, f"module #{index} has no path")
        modules.append(_parse_module(item, source))
    return modules


def _parse_module(item: dict[str, Any], source: str) -> ParsedModule:
    path = str(item["path"])
    language = str(item.get("language") or "unknown")

    chunks: list[CodeUnit] = []
    for chunk in item.get("chunks") or []:
        if not isinstance(chunk, dict) or not chunk.get("id"):
            raise RecordFormatError(source, f"chunk without id in {path}")
        chunks.append(
            CodeUnit(
                id=str(chunk["id"]),
                file_path=str(chunk.get("filePath") or path),
                content=str(chunk.get("content") or ""),
                start_line=_line_number(chunk, "startLine", source),
                end_line=_line_number(chunk, "endLine", source),
                declared_dependencies=list(chunk.get("dependencies") or []),
                kind=str(chunk.get("type") or "unknown"),
                language=str(chunk.get("language") or language),
                metadata=dict(chunk.get("metadata") or {}),
            )
        )

    return ParsedModule(
        path=path,
        language=language,
        chunks=chunks,
        imports=[str(spec) for spec in item.get("imports") or []],
        exports=[str(name) for name in item.get("exports") or []],
    )


def _line_number(chunk: dict[str, Any], key: str, source: str) -> int:
    value = chunk.get(key) or 0
    try:
        return int(value)
    except (TypeError, ValueError):
        raise RecordFormatError(
            source, f"chunk {chunk['id']} has non-numeric {key}: {value!r}"
        ) from None


def _needs_content(unit: CodeUnit) -> bool:
    return not unit.content and unit.start_line > 0 and unit.end_line >= unit.start_line


def fill_missing_content(
    modules: list[ParsedModule],
    project_root: Path,
    max_workers: int = DEFAULT_WORKERS,
) -> dict[str, str]:
    """Fill chunk content from source files and refresh fingerprints.

    Source files are read concurrently. Chunks whose file cannot be read
    are removed from their module, since their fingerprint is unknown.

    Args:
        modules: Records to complete (modified in place)
        project_root: Root that relative file paths are read from
        max_workers: Upper bound on concurrent reads

    Returns:
        Failure reason by path of the module owning the unreadable chunks
    """
    wanted: dict[Path, list[CodeUnit]] = {}
    owners: dict[int, str] = {}
    for module in modules:
        for unit in module.chunks:
            if _needs_content(unit):
                owners[id(unit)] = module.path
                file_path = Path(unit.file_path)
                if not file_path.is_absolute():
                    file_path = project_root / file_path
                wanted.setdefault(file_path, []).append(unit)

    if not wanted:
        return {}

    contents, failures = read_sources(wanted, max_workers=max_workers)

    for file_path, text in contents.items():
        lines = text.splitlines()
        for unit in wanted[file_path]:
            unit.content = "\n".join(lines[unit.start_line - 1 : unit.end_line])
            unit.content_hash = fingerprint(unit.content)

    failed_units = {id(unit) for file_path in failures for unit in wanted[file_path]}
    if failed_units:
        for module in modules:
            module.chunks = [unit for unit in module.chunks if id(unit) not in failed_units]
        logger.warning(f"Dropped {len(failed_units)} chunks from unreadable sources")

    return {
        owners[id(unit)]: failures[file_path]
        for file_path in failures
        for unit in wanted[file_path]
    }
