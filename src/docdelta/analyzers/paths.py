"""Project-relative path normalization shared by the analyzers.

Graph keys are POSIX-style paths relative to the project root with no
``.``/``..`` segments. Paths that escape the root have no key.
"""

import os
import posixpath
from pathlib import Path, PurePosixPath


def normalize_path(project_root: Path, path: str | Path) -> str | None:
    """Return the normalized project-relative key for ``path``.

    Args:
        project_root: Absolute project root
        path: Absolute path, or path relative to the project root

    Returns:
        Key such as ``src/app.ts``, or None if the path lies outside the root
    """
    raw = str(path).replace("\\", "/")
    if not raw:
        return None

    if Path(raw).is_absolute():
        try:
            rel = os.path.relpath(os.path.normpath(raw), os.path.normpath(str(project_root)))
        except ValueError:
            # different drive on Windows
            return None
        rel = rel.replace("\\", "/")
    else:
        rel = raw

    rel = posixpath.normpath(rel)
    if rel == "." or rel == ".." or rel.startswith("../") or rel.startswith("/"):
        return None
    return rel


def join_key(directory: str, specifier: str) -> str | None:
    """Join a relative specifier onto a key's directory, staying inside the root."""
    joined = posixpath.normpath(posixpath.join(directory, specifier)) if directory else (
        posixpath.normpath(specifier)
    )
    if joined == ".." or joined.startswith("../") or joined.startswith("/"):
        return None
    return "" if joined == "." else joined


def parent_key(key: str) -> str:
    """Directory part of a key ('' for files at the root)."""
    parent = str(PurePosixPath(key).parent)
    return "" if parent == "." else parent
