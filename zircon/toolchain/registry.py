"""
Registry of installed toolchains.

The registry is the directory listing of ``<root>/toolchains`` itself: a
toolchain is installed when its directory exists, and it is active when
``toolchains/current`` points at it. Nothing else is persisted.

Example:
    >>> registry = ToolchainRegistry(ZirconPaths.from_root())
    >>> [t.name for t in registry.list()]
    ['main@1a2b3c4d', 'nightly', 'v0.1.0']
    >>> registry.current()
    'v0.1.0'
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..core.directory import CURRENT_LINK_NAME, ZirconPaths
from ..core.exceptions import (
    CannotDeleteActiveError,
    ToolchainNotFoundError,
    ZirconError,
)
from ..core.filesystem import safe_rmtree
from ..core.locking import LockManager

logger = logging.getLogger(__name__)


@dataclass
class ToolchainInfo:
    """An installed toolchain."""

    name: str
    path: Path
    is_current: bool = False


@dataclass
class PruneResult:
    """Outcome of a batch delete."""

    removed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failed


def read_link_target(link_path: Path) -> Optional[Path]:
    """
    Target of a symlink or junction, whether or not it exists.

    Returns:
        Absolute target path, or None if link_path is missing or not a link
    """
    try:
        target = os.readlink(link_path)
    except OSError:
        return None

    # Junction targets come back with the \\?\ prefix
    if target.startswith("\\\\?\\"):
        target = target[4:]
    target_path = Path(target)
    if not target_path.is_absolute():
        target_path = link_path.parent / target_path
    return target_path


class ToolchainRegistry:
    """
    Lists, looks up and deletes installed toolchains.

    Mutating operations hold the root lock when a LockManager is given;
    listing never locks.
    """

    def __init__(self, paths: ZirconPaths, lock_manager: Optional[LockManager] = None):
        self.paths = paths
        self.lock_manager = lock_manager

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def current(self) -> Optional[str]:
        """Name of the active toolchain, or None if absent or dangling."""
        target = read_link_target(self.paths.current_link)
        if target is None or not target.is_dir():
            return None
        return target.name

    def list(self) -> List[ToolchainInfo]:
        """Installed toolchains sorted by name, excluding 'current' and hidden entries."""
        toolchains_dir = self.paths.toolchains_dir
        if not toolchains_dir.is_dir():
            return []

        current = self.current()
        toolchains = []
        for entry in toolchains_dir.iterdir():
            if entry.name == CURRENT_LINK_NAME or entry.name.startswith("."):
                continue
            if entry.is_symlink() or not entry.is_dir():
                continue
            toolchains.append(
                ToolchainInfo(
                    name=entry.name, path=entry, is_current=entry.name == current
                )
            )

        toolchains.sort(key=lambda t: t.name)
        return toolchains

    def exists(self, name: str) -> bool:
        return self.paths.toolchain_dir(name).is_dir()

    def get(self, name: str) -> Path:
        """
        Path of an installed toolchain.

        Raises:
            InvalidToolchainNameError: If the name is not a valid toolchain name
            ToolchainNotFoundError: If it isn't installed
        """
        path = self.paths.toolchain_dir(name)
        if not path.is_dir():
            raise ToolchainNotFoundError(name)
        return path

    def prunable(self) -> List[str]:
        """Every installed toolchain except the active one."""
        return [t.name for t in self.list() if not t.is_current]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def delete(self, name: str) -> None:
        """
        Delete an installed toolchain.

        Raises:
            ToolchainNotFoundError: If it isn't installed
            CannotDeleteActiveError: If it is the active toolchain
        """
        if self.lock_manager is None:
            self._delete(name)
            return
        with self.lock_manager.root_lock():
            self._delete(name)

    def _delete(self, name: str) -> None:
        path = self.get(name)
        if self.current() == name:
            raise CannotDeleteActiveError(name)

        logger.debug(f"Removing {path}")
        safe_rmtree(path, require_prefix=self.paths.toolchains_dir)
        logger.info(f"Deleted toolchain: {name}")

    def prune(self, names: Optional[Iterable[str]] = None) -> PruneResult:
        """
        Delete several toolchains, continuing past individual failures.

        Args:
            names: Toolchains to delete (default: prunable())

        Returns:
            PruneResult listing what was removed and what failed
        """
        if self.lock_manager is None:
            return self._prune(names)
        with self.lock_manager.root_lock():
            return self._prune(names)

    def _prune(self, names: Optional[Iterable[str]]) -> PruneResult:
        candidates = self.prunable() if names is None else list(names)
        result = PruneResult()

        for name in candidates:
            try:
                self._delete(name)
                result.removed.append(name)
            except (ZirconError, ValueError) as e:
                logger.error(f"Failed to delete {name}: {e}")
                result.failed.append(name)
                result.errors[name] = str(e)

        return result


__all__ = [
    "ToolchainInfo",
    "PruneResult",
    "ToolchainRegistry",
    "read_link_target",
]
