"""
Activation of toolchains through links.

The active toolchain is whatever ``toolchains/current`` points at. Switching
repoints that link plus the user-facing links under ``<root>/bin`` and
``<root>/include``. Uses symlinks on Unix-like systems and directory
junctions on Windows.

On POSIX every link is replaced atomically: a temporary symlink is created
next to the old one and renamed over it, so a reader sees either the old
target or the new one. Windows cannot rename over a junction; there the old
link is removed before the new one is created, leaving a short window with
no active toolchain.
"""

import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Iterable, Optional

from ..core.config import DEFAULT_BINARIES
from ..core.directory import ZirconPaths
from ..core.exceptions import LinkCreationError
from ..core.filesystem import safe_rmtree
from ..core.locking import LockManager
from ..core.platform import PlatformInfo, detect_platform
from .registry import ToolchainRegistry
from .verifier import validate_toolchain_structure

if sys.platform == "win32":
    import _winapi

logger = logging.getLogger(__name__)

FILE_ATTRIBUTE_REPARSE_POINT = 0x400


class ToolchainLinkManager:
    """Manages the links that make a toolchain active."""

    def __init__(self, paths: ZirconPaths, platform: Optional[PlatformInfo] = None):
        """
        Initialize link manager.

        Args:
            paths: Layout of the Zircon root
            platform: PlatformInfo instance (auto-detected if None)
        """
        self.paths = paths
        self.platform = platform or detect_platform()
        self._use_junctions = self.platform.is_windows

    # ------------------------------------------------------------------
    # Single links
    # ------------------------------------------------------------------

    def replace_link(self, link_path: Path, target_path: Path) -> None:
        """
        Point link_path at target_path, replacing whatever link is there.

        A real directory left at link_path (e.g. from a failed earlier run)
        is removed first.

        Raises:
            LinkCreationError: If the target is missing or the link can't be made
        """
        link_path = Path(link_path).absolute()
        target_path = Path(target_path).resolve()

        if not target_path.exists():
            raise LinkCreationError(f"Link target does not exist: {target_path}")

        link_path.parent.mkdir(parents=True, exist_ok=True)

        if (
            link_path.is_dir()
            and not link_path.is_symlink()
            and not self._is_junction(link_path)
        ):
            logger.warning(f"Replacing directory {link_path} with a link")
            safe_rmtree(link_path)

        try:
            if self._use_junctions:
                self.remove_link(link_path)
                if target_path.is_dir():
                    self._create_junction(link_path, target_path)
                else:
                    self._create_file_link(link_path, target_path)
            else:
                self._replace_symlink(link_path, target_path)
        except OSError as e:
            raise LinkCreationError(
                f"Failed to link {link_path} -> {target_path}: {e}"
            ) from e

        logger.debug(f"Linked {link_path} -> {target_path}")

    def _replace_symlink(self, link_path: Path, target_path: Path) -> None:
        """Create a temporary symlink and rename it over link_path."""
        temp_link = link_path.with_name(f".{link_path.name}.tmp-{os.getpid()}")
        if temp_link.is_symlink() or temp_link.exists():
            temp_link.unlink()

        os.symlink(target_path, temp_link, target_is_directory=target_path.is_dir())
        try:
            os.replace(temp_link, link_path)
        except OSError:
            temp_link.unlink(missing_ok=True)
            raise

    def _create_junction(self, link_path: Path, target_path: Path) -> None:
        """Create directory junction (Windows)."""
        try:
            _winapi.CreateJunction(str(target_path), str(link_path))
            return
        except OSError as e:
            logger.debug(f"_winapi.CreateJunction failed: {e}, trying mklink")

        result = subprocess.run(
            ["cmd", "/c", "mklink", "/J", str(link_path), str(target_path)],
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            raise OSError(f"mklink failed: {result.stderr.strip()}")

    def _create_file_link(self, link_path: Path, target_path: Path) -> None:
        """
        Link a single file on Windows.

        Junctions only work for directories and symlinks need a privilege
        most users lack, so fall back to a copy.
        """
        try:
            os.symlink(target_path, link_path)
        except OSError as e:
            logger.debug(f"Symlink failed ({e}), copying {target_path} instead")
            shutil.copy2(target_path, link_path)

    def remove_link(self, link_path: Path) -> bool:
        """
        Remove a symlink, junction, or copied file.

        Returns:
            True if something was removed
        """
        link_path = Path(link_path)
        if self._is_junction(link_path):
            # Junctions are removed with rmdir, not unlink
            os.rmdir(link_path)
        elif link_path.is_symlink() or link_path.is_file():
            link_path.unlink()
        else:
            return False

        logger.debug(f"Removed link: {link_path}")
        return True

    def _is_junction(self, path: Path) -> bool:
        """Check if path is a Windows directory junction."""
        if not self._use_junctions:
            return False
        try:
            st = os.stat(path, follow_symlinks=False)
        except OSError:
            return False
        return bool(getattr(st, "st_file_attributes", 0) & FILE_ATTRIBUTE_REPARSE_POINT)

    # ------------------------------------------------------------------
    # Activation
    # ------------------------------------------------------------------

    def activate(
        self, name: str, binaries: Iterable[str] = DEFAULT_BINARIES
    ) -> Path:
        """
        Make an installed toolchain the active one.

        The structure is validated before any link changes. ``current`` is
        repointed first, then one ``<root>/bin`` link per binary the
        toolchain ships (stale links for binaries it lacks are removed),
        then ``<root>/include``.

        Args:
            name: Installed toolchain name
            binaries: Convenience binaries; the first one is required

        Returns:
            Path to the activated toolchain directory

        Raises:
            InvalidToolchainStructureError: If the toolchain is unusable
            LinkCreationError: If a link cannot be created
        """
        binaries = list(binaries)
        toolchain_dir = self.paths.toolchain_dir(name)
        validate_toolchain_structure(toolchain_dir, binaries[0])

        self.replace_link(self.paths.current_link, toolchain_dir)

        for binary in binaries:
            source = self.paths.toolchain_binary(name, binary)
            link = self.paths.binary_link(binary)
            if source.is_file():
                self.replace_link(link, source)
            elif self.remove_link(link):
                logger.debug(f"Removed stale {binary} link (not in {name})")

        include_dir = self.paths.toolchain_include_dir(name)
        if include_dir.is_dir():
            self.replace_link(self.paths.include_link, include_dir)
        else:
            self.remove_link(self.paths.include_link)

        logger.info(f"Activated toolchain: {name}")
        return toolchain_dir


class ToolchainSwitcher:
    """
    Switches the active toolchain under the root lock.

    Example:
        >>> switcher = ToolchainSwitcher(paths)
        >>> switcher.switch("v0.1.0")
    """

    def __init__(
        self,
        paths: ZirconPaths,
        registry: Optional[ToolchainRegistry] = None,
        link_manager: Optional[ToolchainLinkManager] = None,
        lock_manager: Optional[LockManager] = None,
        binaries: Iterable[str] = DEFAULT_BINARIES,
    ):
        self.paths = paths
        self.link_manager = link_manager or ToolchainLinkManager(paths)
        self.registry = registry or ToolchainRegistry(paths)
        self.lock_manager = lock_manager or LockManager(paths.lock_dir)
        self.binaries = list(binaries)

    def switch(self, name: str) -> Path:
        """
        Activate an installed toolchain.

        Raises:
            ToolchainNotFoundError: If the toolchain isn't installed
        """
        with self.lock_manager.root_lock():
            self.registry.get(name)
            return self.link_manager.activate(name, self.binaries)


__all__ = [
    "ToolchainLinkManager",
    "ToolchainSwitcher",
]
