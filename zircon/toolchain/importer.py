"""
Import of pre-built toolchain archives.

An archive is extracted into ``<root>/staging/<name>``, validated there, and
only then moved into ``<root>/toolchains/<name>`` with a single rename. A
toolchain directory therefore either doesn't exist or is complete; an
archive that fails validation never reaches the toolchains directory.

Example:
    >>> importer = ToolchainImporter(paths)
    >>> result = importer.import_archive(Path("zrc-linux-x64.tar.gz"), name="nightly")
    >>> result.path
    PosixPath('/home/user/.zircon/toolchains/nightly')
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from ..core.config import DEFAULT_BINARIES
from ..core.directory import ZirconPaths, validate_toolchain_name
from ..core.exceptions import (
    ArchiveError,
    CannotDeleteActiveError,
    ToolchainAlreadyExistsError,
    UnsupportedArchiveFormat,
)
from ..core.filesystem import (
    archive_suffix,
    extract_archive,
    safe_rmtree,
    strip_archive_suffix,
)
from ..core.locking import LockManager
from .linking import ToolchainLinkManager
from .registry import ToolchainRegistry
from .verifier import validate_toolchain_structure

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """A toolchain produced by an import."""

    name: str
    path: Path
    is_current: bool = False
    replaced: bool = False


def find_content_root(extracted: Path) -> Path:
    """
    Locate the toolchain root inside an extracted archive.

    Release archives usually wrap everything in one top-level directory
    (``zrc-linux-x64/bin/zrc``). When the extraction holds exactly one
    directory and no bin/, that directory is the root.
    """
    if (extracted / "bin").is_dir():
        return extracted

    entries = list(extracted.iterdir())
    if len(entries) == 1 and entries[0].is_dir() and not entries[0].is_symlink():
        logger.debug(f"Using wrapped directory {entries[0].name} as toolchain root")
        return entries[0]
    return extracted


class ToolchainImporter:
    """Ingests toolchain archives into the toolchains directory."""

    def __init__(
        self,
        paths: ZirconPaths,
        lock_manager: Optional[LockManager] = None,
        link_manager: Optional[ToolchainLinkManager] = None,
        binaries: Iterable[str] = DEFAULT_BINARIES,
    ):
        self.paths = paths
        self.lock_manager = lock_manager or LockManager(paths.lock_dir)
        self.link_manager = link_manager or ToolchainLinkManager(paths)
        self.registry = ToolchainRegistry(paths)
        self.binaries = list(binaries)

    def import_archive(
        self,
        archive: Path,
        name: Optional[str] = None,
        force: bool = False,
        activate: bool = False,
    ) -> ImportResult:
        """
        Import a toolchain archive.

        Args:
            archive: Path to a .tar.gz, .tgz, .tar, .tar.xz, .tar.bz2 or .zip file
            name: Toolchain name (default: archive file name minus its suffix)
            force: Replace an existing toolchain of the same name
            activate: Switch to the toolchain after importing it

        Returns:
            ImportResult for the new toolchain

        Raises:
            ArchiveError: If the archive is missing or can't be extracted
            UnsupportedArchiveFormat: If the suffix isn't recognised
            UnsafeArchiveEntryError: If a member would escape the destination
            InvalidToolchainStructureError: If bin/zrc is missing
            ToolchainAlreadyExistsError: If the name is taken and force is False
            CannotDeleteActiveError: If force would replace the active toolchain
        """
        archive = Path(archive)
        if not archive.is_file():
            raise ArchiveError(f"Archive not found: {archive}")
        if archive_suffix(archive) is None:
            raise UnsupportedArchiveFormat(
                f"Unsupported archive format: {archive.name}. "
                "Supported: .tar, .tar.gz, .tgz, .tar.xz, .tar.bz2, .zip"
            )

        name = validate_toolchain_name(name or strip_archive_suffix(archive))

        with self.lock_manager.root_lock():
            self.paths.ensure_directories()
            replaced = self._check_conflict(name, force)

            logger.info(f"Importing {archive.name} as toolchain '{name}'...")
            staged = self._stage(archive, name)
            self._install(staged, name, replaced)

            is_current = False
            if activate:
                self.link_manager.activate(name, self.binaries)
                is_current = True

        logger.info(f"Imported toolchain: {name}")
        return ImportResult(
            name=name,
            path=self.paths.toolchain_dir(name),
            is_current=is_current,
            replaced=replaced,
        )

    def _check_conflict(self, name: str, force: bool) -> bool:
        """Return True if an existing toolchain will be replaced."""
        if not self.registry.exists(name):
            return False
        if not force:
            raise ToolchainAlreadyExistsError(name)
        if self.registry.current() == name:
            raise CannotDeleteActiveError(name)
        return True

    def _stage(self, archive: Path, name: str) -> Path:
        """Extract into a fresh staging directory and validate the result."""
        staging = self.paths.staging_dir / name
        if staging.exists():
            safe_rmtree(staging, require_prefix=self.paths.staging_dir)

        def report(current: int, total: int) -> None:
            if current == total or current % 500 == 0:
                logger.debug(f"Extracted {current}/{total} entries")

        extract_archive(archive, staging, progress_callback=report)

        content_root = find_content_root(staging)
        # On failure the staging directory is left behind for inspection
        validate_toolchain_structure(content_root, self.binaries[0])
        return content_root

    def _install(self, content_root: Path, name: str, replace: bool) -> None:
        """Move a validated tree into toolchains/<name>."""
        destination = self.paths.toolchain_dir(name)
        if replace:
            logger.info(f"Replacing existing toolchain: {name}")
            safe_rmtree(destination, require_prefix=self.paths.toolchains_dir)

        staging = self.paths.staging_dir / name
        try:
            os.replace(content_root, destination)
        except OSError as e:
            raise ArchiveError(
                f"Failed to move {content_root} into {destination}: {e}"
            ) from e

        if content_root != staging and staging.exists():
            safe_rmtree(staging, require_prefix=self.paths.staging_dir)


__all__ = [
    "ImportResult",
    "ToolchainImporter",
    "find_content_root",
]
