"""
Install pre-built toolchains from GitHub releases.

Release archives are published per tag as ``zrc-<os>-<arch>.tar.gz``
(``nightly`` is the rolling tag). The archive is downloaded into
``<root>/downloads`` and imported under the tag name.
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from ..core.config import ZirconConfig
from ..core.directory import ZirconPaths, validate_toolchain_name
from ..core.download import DownloadProgress, download_file
from ..core.exceptions import ToolchainAlreadyExistsError
from ..core.locking import LockManager
from ..core.platform import PlatformInfo, detect_platform, release_artifact_name
from .importer import ImportResult, ToolchainImporter
from .linking import ToolchainLinkManager
from .registry import ToolchainRegistry

logger = logging.getLogger(__name__)

DEFAULT_TAG = "nightly"


class ReleaseInstaller:
    """Downloads and imports release archives."""

    def __init__(
        self,
        paths: ZirconPaths,
        config: Optional[ZirconConfig] = None,
        lock_manager: Optional[LockManager] = None,
        link_manager: Optional[ToolchainLinkManager] = None,
        platform: Optional[PlatformInfo] = None,
    ):
        self.paths = paths
        self.config = config or ZirconConfig()
        self.platform = platform or detect_platform()
        lock_manager = lock_manager or LockManager(
            paths.lock_dir, timeout=self.config.lock_timeout
        )
        self.importer = ToolchainImporter(
            paths,
            lock_manager=lock_manager,
            link_manager=link_manager or ToolchainLinkManager(paths, self.platform),
            binaries=self.config.binaries,
        )
        self.registry = ToolchainRegistry(paths)

    def release_url(self, tag: str) -> str:
        """
        Download URL of the release archive for this platform.

        Raises:
            UnsupportedPlatformError: If no archive is published for the platform

        Example:
            >>> installer.release_url("nightly")
            'https://github.com/zirco-lang/zrc/releases/download/nightly/zrc-linux-x64.tar.gz'
        """
        return f"{self.config.release_url}/{tag}/{release_artifact_name(self.platform)}"

    def install(
        self,
        tag: str = DEFAULT_TAG,
        force: bool = False,
        activate: bool = False,
        progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    ) -> ImportResult:
        """
        Download and import a release.

        Args:
            tag: Release tag, also used as the toolchain name
            force: Replace an installed toolchain of the same name
            activate: Switch to the toolchain after importing it
            progress_callback: Receives download progress updates

        Returns:
            ImportResult for the installed toolchain

        Raises:
            UnsupportedPlatformError: If no archive exists for this platform
            NetworkFailureError: If the download fails
            ToolchainAlreadyExistsError: If already installed and force is False
        """
        name = validate_toolchain_name(tag)
        url = self.release_url(tag)

        if not force and self.registry.exists(name):
            raise ToolchainAlreadyExistsError(name)

        logger.info(f"Installing {tag} release...")
        logger.info(f"Downloading from: {url}")

        self.paths.ensure_directories()
        archive = self.paths.downloads_dir / f"{name}-{release_artifact_name(self.platform)}"
        download_file(url, archive, progress_callback=progress_callback)

        logger.info("Download complete. Importing toolchain...")
        try:
            return self.importer.import_archive(
                archive, name=name, force=force, activate=activate
            )
        finally:
            self._cleanup(archive)

    def _cleanup(self, archive: Path) -> None:
        try:
            archive.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to clean up temporary file: {e}")


__all__ = [
    "DEFAULT_TAG",
    "ReleaseInstaller",
]
