"""Entry point resolution for dependency flow analysis.

Entry points are the files a program starts from. They are discovered in
three additive passes:
- Manifest declarations (package.json main/module/bin, pyproject scripts)
- Conventional file names (index, main, app, server) at the root and in src/
- Framework conventions, when the manifest declares a known framework

Files that do not exist are never entry points. Finding none is a valid
result, not an error.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from docdelta.analyzers.manifest import ProjectManifest
from docdelta.analyzers.paths import normalize_path
from docdelta.config import DEFAULT_EXTENSIONS

logger = logging.getLogger(__name__)


class EntryPointResolver:
    """Resolves the entry point files of a project.

    The result is an insertion-ordered set: duplicates are coalesced and
    the discovery order is kept, because traversal visits entry points in
    exactly that order. Declared entries that did not resolve are left in
    ``missing`` after each call.
    """

    CONVENTIONAL_NAMES = ["index", "main", "app", "server"]
    CONVENTIONAL_DIRS = ["", "src"]

    # Framework -> conventional entry files (project-relative)
    FRAMEWORK_ENTRY_FILES: dict[str, list[str]] = {
        "Next.js": [
            "pages/_app.tsx",
            "pages/_app.jsx",
            "pages/_app.js",
            "pages/index.tsx",
            "pages/index.jsx",
            "pages/index.js",
            "app/layout.tsx",
            "app/layout.jsx",
            "app/layout.js",
            "src/pages/index.tsx",
            "src/app/layout.tsx",
        ],
        "Nuxt": ["app.vue", "nuxt.config.ts", "nuxt.config.js"],
        "React": ["src/App.tsx", "src/App.jsx", "src/App.js"],
        "Vue.js": ["src/App.vue"],
        "Angular": ["src/main.ts"],
        "Svelte": ["src/App.svelte"],
        "NestJS": ["src/main.ts"],
        "Express.js": ["bin/www", "routes/index.js"],
        "Django": ["manage.py", "wsgi.py", "asgi.py"],
        "FastAPI": ["app/main.py", "asgi.py"],
        "Flask": ["wsgi.py", "app/__init__.py"],
    }

    def __init__(self, extensions: Iterable[str] | None = None) -> None:
        """Initialize the resolver.

        Args:
            extensions: Recognized source extensions, in priority order
        """
        self.extensions = list(extensions) if extensions is not None else list(DEFAULT_EXTENSIONS)
        self.missing: list[str] = []

    def resolve(
        self,
        project_root: Path,
        manifest: ProjectManifest | None = None,
        extra: Iterable[str] = (),
    ) -> list[str]:
        """Resolve entry point files.

        Args:
            project_root: Project root directory
            manifest: Parsed project manifest, if any
            extra: Additional configured entry files, checked last

        Returns:
            Project-relative entry point paths, unique, in discovery order
        """
        found: dict[str, None] = {}
        self.missing = []

        if manifest is not None:
            for declared in manifest.entries:
                key = self._resolve_declared(project_root, declared)
                if key is None:
                    logger.warning(f"Declared entry point not found: {declared}")
                    self.missing.append(declared)
                    continue
                found.setdefault(key)

        for key in self._conventional_candidates():
            if (project_root / key).is_file():
                found.setdefault(key)

        framework = manifest.framework if manifest is not None else None
        if framework:
            logger.debug(f"Applying {framework} entry point conventions")
            for key in self.FRAMEWORK_ENTRY_FILES.get(framework, []):
                if (project_root / key).is_file():
                    found.setdefault(key)

        for declared in extra:
            key = self._resolve_declared(project_root, declared)
            if key is None:
                logger.warning(f"Configured entry point not found: {declared}")
                self.missing.append(declared)
                continue
            found.setdefault(key)

        entry_points = list(found)
        logger.info(f"Resolved {len(entry_points)} entry points")
        return entry_points

    def _conventional_candidates(self) -> list[str]:
        candidates: list[str] = []
        for directory in self.CONVENTIONAL_DIRS:
            prefix = f"{directory}/" if directory else ""
            for name in self.CONVENTIONAL_NAMES:
                for ext in self.extensions:
                    candidates.append(f"{prefix}{name}{ext}")
        return candidates

    def _resolve_declared(self, project_root: Path, declared: str) -> str | None:
        """Resolve a declared entry the way a module loader would.

        Tries the literal path, then each extension appended, then an index
        file inside the path.
        """
        key = normalize_path(project_root, declared)
        if key is None:
            return None

        candidates = [key]
        candidates.extend(f"{key}{ext}" for ext in self.extensions)
        candidates.extend(f"{key}/index{ext}" for ext in self.extensions)
        for candidate in candidates:
            if (project_root / candidate).is_file():
                return candidate
        return None


def resolve_entry_points(
    project_root: Path,
    manifest: ProjectManifest | None = None,
    extensions: Iterable[str] | None = None,
) -> list[str]:
    """Resolve entry points of a project.

    Convenience function for entry point resolution.

    Args:
        project_root: Project root directory
        manifest: Parsed project manifest, if any
        extensions: Recognized source extensions

    Returns:
        Project-relative entry point paths in discovery order
    """
    return EntryPointResolver(extensions).resolve(project_root, manifest)
