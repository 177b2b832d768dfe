"""Content fingerprinting for code units and source files.

Fingerprints are SHA-256 digests over the exact bytes of the content. No
whitespace or comment normalization is applied.
"""

import hashlib
import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

logger = logging.getLogger(__name__)

_BLOCK_SIZE = 65536
DEFAULT_WORKERS = 8


def fingerprint(content: bytes | str) -> str:
    """Return the SHA-256 hex digest of ``content``.

    Strings are encoded as UTF-8 before hashing. The empty string hashes
    like any other input.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


def fingerprint_file(path: Path) -> str:
    """Return the SHA-256 hex digest of a file's bytes, read in blocks."""
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        while block := handle.read(_BLOCK_SIZE):
            digest.update(block)
    return digest.hexdigest()


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def read_sources(
    paths: Iterable[Path],
    max_workers: int = DEFAULT_WORKERS,
) -> tuple[dict[Path, str], dict[Path, str]]:
    """Read source files concurrently.

    Reads are independent of each other, so they run on a bounded thread pool.
    A file that cannot be read or decoded is reported in the failures map
    and does not stop the batch.

    Args:
        paths: Files to read
        max_workers: Upper bound on concurrent reads

    Returns:
        Tuple of (contents by path, failure reason by path)
    """
    unique = list(dict.fromkeys(paths))
    contents: dict[Path, str] = {}
    failures: dict[Path, str] = {}
    if not unique:
        return contents, failures

    workers = max(1, min(max_workers, len(unique)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(_read_text, path): path for path in unique}
        for future in as_completed(futures):
            path = futures[future]
            try:
                contents[path] = future.result()
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Skipping unreadable source %s: %s", path, e)
                failures[path] = str(e)

    return contents, failures
