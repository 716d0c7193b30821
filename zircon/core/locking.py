"""
Advisory locking for Zircon.

Every operation that mutates the toolchains root or the active indirection
(import, install, build, switch, delete, prune) holds a single lock file for
its whole duration, so two invocations against the same root are serialized.
Read-only operations (list, current) never lock.

Usage:
    from zircon.core.locking import LockManager

    lock_manager = LockManager(paths.lock_dir)
    with lock_manager.root_lock(timeout=30):
        # Safely mutate toolchains/ and toolchains/current
        pass
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout

from .exceptions import RegistryLockTimeout

logger = logging.getLogger(__name__)

ROOT_LOCK_NAME = "zircon.lock"
DEFAULT_LOCK_TIMEOUT = 30


class LockManager:
    """
    Manages the advisory lock guarding a Zircon root.

    Uses file-based locking with the `filelock` library for cross-platform
    compatibility and automatic release on process death.

    Attributes:
        lock_dir: Directory where lock files are stored
        timeout: Default wait time in seconds
    """

    def __init__(self, lock_dir: Path, timeout: float = DEFAULT_LOCK_TIMEOUT):
        """
        Initialize lock manager.

        Args:
            lock_dir: Directory for lock files (usually <root>/lock)
            timeout: Default wait time in seconds
        """
        self.lock_dir = Path(lock_dir)
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        self.timeout = timeout
        self._lock = FileLock(self.lock_dir / ROOT_LOCK_NAME)

    @property
    def lock_path(self) -> Path:
        return self.lock_dir / ROOT_LOCK_NAME

    @contextmanager
    def root_lock(self, timeout: Optional[float] = None):
        """
        Acquire the root lock for a mutating operation.

        The lock is re-entrant for one manager instance, so nested mutating
        operations (e.g. an install that activates) don't deadlock.

        Args:
            timeout: Maximum wait time in seconds (default: manager timeout)

        Yields:
            None

        Raises:
            RegistryLockTimeout: If lock can't be acquired within timeout
        """
        if timeout is None:
            timeout = self.timeout

        try:
            self._lock.acquire(timeout=timeout)
        except Timeout as e:
            logger.error(
                f"Could not acquire lock {self.lock_path} after {timeout}s. "
                "Another Zircon process may be running."
            )
            raise RegistryLockTimeout(
                f"Could not acquire lock after {timeout}s. "
                "Another Zircon process may be running."
            ) from e

        logger.debug(f"Acquired root lock: {self.lock_path}")
        try:
            yield
        finally:
            self._lock.release()
            logger.debug(f"Released root lock: {self.lock_path}")


__all__ = [
    "LockManager",
    "ROOT_LOCK_NAME",
    "DEFAULT_LOCK_TIMEOUT",
]
