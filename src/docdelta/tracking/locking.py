"""Advisory file locking for the metadata document.

The lock lives in a sibling ``<name>.lock`` file so the data file itself can
be replaced atomically while the lock is held.
"""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

if os.name == "nt":
    import msvcrt

    def _acquire(fd: int) -> None:
        msvcrt.locking(fd, msvcrt.LK_LOCK, 1)

    def _release(fd: int) -> None:
        msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)

else:
    import fcntl

    def _acquire(fd: int) -> None:
        fcntl.flock(fd, fcntl.LOCK_EX)

    def _release(fd: int) -> None:
        fcntl.flock(fd, fcntl.LOCK_UN)


def lock_path_for(path: Path) -> Path:
    """Return the lock file guarding ``path``."""
    return path.with_name(f"{path.name}.lock")


@contextmanager
def exclusive_lock(path: Path) -> Iterator[Path]:
    """Hold an exclusive advisory lock for ``path`` for the duration of the block.

    Blocks until the lock is available. Only cooperating processes that use
    the same lock file are excluded.

    Raises:
        OSError: If the lock file cannot be created or locked
    """
    lock_file = lock_path_for(path)
    lock_file.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(lock_file, os.O_RDWR | os.O_CREAT, 0o644)
    try:
        _acquire(fd)
        logger.debug("Acquired lock %s", lock_file)
        try:
            yield lock_file
        finally:
            _release(fd)
    finally:
        os.close(fd)
