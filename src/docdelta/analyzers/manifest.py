"""Project manifest parsing.

Reads the package descriptors that declare entry points and dependencies:
- package.json (JavaScript/TypeScript): main, module, bin, dependencies
- pyproject.toml (Python): [project.scripts], [project.gui-scripts], dependencies

The manifest feeds entry point resolution and framework detection only;
versions and dependency trees are out of scope.
"""

import json
import logging
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from docdelta.models.flow import ProjectStructure

logger = logging.getLogger(__name__)

# Dependency name -> framework, in detection priority order
KNOWN_FRAMEWORKS: dict[str, dict[str, str]] = {
    "npm": {
        "next": "Next.js",
        "nuxt": "Nuxt",
        "react": "React",
        "vue": "Vue.js",
        "@angular/core": "Angular",
        "svelte": "Svelte",
        "express": "Express.js",
        "fastify": "Fastify",
        "koa": "Koa",
        "@nestjs/core": "NestJS",
    },
    "pypi": {
        "django": "Django",
        "fastapi": "FastAPI",
        "flask": "Flask",
        "starlette": "Starlette",
        "tornado": "Tornado",
        "aiohttp": "aiohttp",
    },
}

LOCKFILES = [
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("package-lock.json", "npm"),
    ("poetry.lock", "poetry"),
    ("uv.lock", "uv"),
    ("Pipfile.lock", "pipenv"),
]

SRC_DIRS = ["src", "lib", "app", "source"]
TEST_DIRS = ["test", "tests", "__tests__", "spec"]
CONFIG_FILES = [
    "package.json",
    "tsconfig.json",
    "pyproject.toml",
    "setup.cfg",
    "webpack.config.*",
    "vite.config.*",
    ".eslintrc.*",
    "jest.config.*",
    "babel.config.*",
]

_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


@dataclass
class ProjectManifest:
    """Entry and dependency declarations of a project.

    Attributes:
        entries: Declared entry files, project-relative, in declaration order
        dependencies: Declared dependency names (runtime and dev)
        ecosystem: Ecosystem of the manifest that declared them (npm, pypi)
        sources: Manifest files that were read
    """

    entries: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    ecosystem: str | None = None
    sources: list[str] = field(default_factory=list)

    @property
    def framework(self) -> str | None:
        """First known framework among the declared dependencies."""
        return detect_framework(self.dependencies)

    def merge(self, other: "ProjectManifest") -> None:
        for entry in other.entries:
            if entry not in self.entries:
                self.entries.append(entry)
        for dep in other.dependencies:
            if dep not in self.dependencies:
                self.dependencies.append(dep)
        self.ecosystem = self.ecosystem or other.ecosystem
        self.sources.extend(other.sources)


def detect_framework(dependencies: list[str]) -> str | None:
    """Return the first known framework declared in ``dependencies``."""
    declared = {dep.lower() for dep in dependencies}
    for frameworks in KNOWN_FRAMEWORKS.values():
        for package, name in frameworks.items():
            if package in declared:
                return name
    return None


def load_manifest(project_root: Path) -> ProjectManifest | None:
    """Read the project's manifests.

    A manifest that cannot be parsed is skipped with a warning.

    Args:
        project_root: Project root directory

    Returns:
        Merged manifest, or None if no manifest was readable
    """
    manifest: ProjectManifest | None = None

    parsers = [
        ("package.json", _parse_package_json),
        ("pyproject.toml", _parse_pyproject_toml),
    ]
    for filename, parser in parsers:
        file_path = project_root / filename
        if not file_path.is_file():
            continue
        try:
            parsed = parser(file_path, project_root)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to parse {file_path}: {e}")
            continue

        logger.debug(
            f"Parsed {filename}: {len(parsed.entries)} entries, "
            f"{len(parsed.dependencies)} dependencies"
        )
        if manifest is None:
            manifest = parsed
        else:
            manifest.merge(parsed)

    return manifest


# =========================================================================
# package.json (JavaScript/TypeScript)
# =========================================================================


def _parse_package_json(file_path: Path, project_root: Path) -> ProjectManifest:
    data = json.loads(file_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("package.json is not a JSON object")

    entries: list[str] = []
    for key in ("main", "module"):
        value = data.get(key)
        if isinstance(value, str) and value:
            entries.append(value)

    bin_field = data.get("bin")
    if isinstance(bin_field, str) and bin_field:
        entries.append(bin_field)
    elif isinstance(bin_field, dict):
        entries.extend(v for v in bin_field.values() if isinstance(v, str) and v)

    dependencies: list[str] = []
    for section in ("dependencies", "devDependencies", "peerDependencies"):
        deps = data.get(section) or {}
        if isinstance(deps, dict):
            dependencies.extend(name for name in deps if name not in dependencies)

    return ProjectManifest(
        entries=entries,
        dependencies=dependencies,
        ecosystem="npm",
        sources=[file_path.name],
    )


# =========================================================================
# pyproject.toml (Python)
# =========================================================================


def _parse_pyproject_toml(file_path: Path, project_root: Path) -> ProjectManifest:
    with file_path.open("rb") as f:
        data = tomllib.load(f)

    project: dict[str, Any] = data.get("project") or {}

    entries: list[str] = []
    for section in ("scripts", "gui-scripts"):
        for target in (project.get(section) or {}).values():
            module_file = _script_target_to_file(str(target), project_root)
            if module_file and module_file not in entries:
                entries.append(module_file)

    dependencies: list[str] = []
    requirements = list(project.get("dependencies") or [])
    for extra in (project.get("optional-dependencies") or {}).values():
        requirements.extend(extra)
    for requirement in requirements:
        match = _REQUIREMENT_NAME.match(str(requirement))
        if match:
            name = match.group(1).lower()
            if name not in dependencies:
                dependencies.append(name)

    return ProjectManifest(
        entries=entries,
        dependencies=dependencies,
        ecosystem="pypi",
        sources=[file_path.name],
    )


def _script_target_to_file(target: str, project_root: Path) -> str | None:
    """Map a ``package.module:function`` script target to its module file.

    Tries the flat layout, then ``src/``; the module file wins over the
    package ``__init__.py``.
    """
    module = target.split(":", 1)[0].strip()
    if not module:
        return None
    rel = module.replace(".", "/")
    for base in ("", "src/"):
        for candidate in (f"{base}{rel}.py", f"{base}{rel}/__init__.py"):
            if (project_root / candidate).is_file():
                return candidate
    return f"{rel}.py"


# =========================================================================
# Project structure
# =========================================================================


def detect_package_manager(project_root: Path) -> str | None:
    for lockfile, manager in LOCKFILES:
        if (project_root / lockfile).exists():
            return manager
    return None


def identify_structure(
    project_root: Path,
    manifest: ProjectManifest | None = None,
) -> ProjectStructure:
    """Describe the project's layout.

    Args:
        project_root: Project root directory
        manifest: Already-loaded manifest (read from disk if None)

    Returns:
        ProjectStructure with directories, config files, package manager
        and framework filled in
    """
    if manifest is None:
        manifest = load_manifest(project_root)

    structure = ProjectStructure(
        root_dir=str(project_root),
        package_manager=detect_package_manager(project_root),
        framework=manifest.framework if manifest else None,
    )

    for directory in SRC_DIRS:
        if (project_root / directory).is_dir():
            structure.src_dir = directory
            break

    for directory in TEST_DIRS:
        if (project_root / directory).is_dir():
            structure.test_dir = directory
            break

    for pattern in CONFIG_FILES:
        for match in sorted(project_root.glob(pattern)):
            if match.is_file():
                structure.config_files.append(match.relative_to(project_root).as_posix())

    return structure
