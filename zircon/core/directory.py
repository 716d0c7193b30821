"""
Directory structure management for Zircon.

This module computes the on-disk layout from a single root directory. All
path helpers are pure; ensure_directories() is the only function that touches
the filesystem.

Directory Structure (~/.zircon/ or %USERPROFILE%\\.zircon\\):
    - sources/zirco-lang/zrc/     : Mirror of the compiler repository
    - sources/zirco-lang/zircon/  : Mirror of Zircon itself (update checks)
    - toolchains/<name>/          : One directory per installed toolchain
    - toolchains/current          : Symlink/junction to the active toolchain
    - bin/                        : Links to the active toolchain's binaries
    - include                     : Link to the active toolchain's headers
    - staging/                    : Archive extraction before validation
    - downloads/                  : Temporary release downloads
    - lock/                       : Advisory lock files
    - config.yaml                 : Optional configuration
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .exceptions import DirectoryError, DirectoryCreationError, InvalidToolchainNameError

ROOT_ENV_VAR = "ZIRCON_PREFIX"
CURRENT_LINK_NAME = "current"
SOURCE_ORG = "zirco-lang"

IS_WINDOWS = os.name == "nt"


def get_zircon_root() -> Path:
    """
    Get the Zircon root directory.

    Honours the ZIRCON_PREFIX environment variable, otherwise falls back to
    a per-user home-relative directory.

    Returns:
        Path: The root directory path.
            - Windows: %USERPROFILE%\\.zircon
            - Linux/macOS: ~/.zircon

    Example:
        >>> get_zircon_root()
        PosixPath('/home/user/.zircon')
    """
    override = os.environ.get(ROOT_ENV_VAR)
    if override:
        return Path(override).expanduser()

    if IS_WINDOWS:
        user_profile = os.environ.get("USERPROFILE")
        if not user_profile:
            raise DirectoryError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine Zircon root directory."
            )
        return Path(user_profile) / ".zircon"
    return Path.home() / ".zircon"


def executable_name(binary: str) -> str:
    """Return the platform file name for an executable ('zrc' -> 'zrc.exe' on Windows)."""
    if IS_WINDOWS and not binary.endswith(".exe"):
        return f"{binary}.exe"
    return binary


def validate_toolchain_name(name: str) -> str:
    """
    Check that a toolchain name is safe to use as a single directory name.

    Args:
        name: Candidate toolchain name

    Returns:
        The name, unchanged

    Raises:
        InvalidToolchainNameError: If the name is empty, reserved, or would
            escape the toolchains directory.
    """
    if not name or not name.strip():
        raise InvalidToolchainNameError("Toolchain name cannot be empty")
    if name in (".", "..", CURRENT_LINK_NAME):
        raise InvalidToolchainNameError(f"'{name}' is a reserved toolchain name")
    if "/" in name or "\\" in name or "\x00" in name:
        raise InvalidToolchainNameError(
            f"Toolchain name '{name}' must not contain path separators"
        )
    if name.startswith("."):
        raise InvalidToolchainNameError(
            f"Toolchain name '{name}' must not start with '.'"
        )
    return name


@dataclass(frozen=True)
class ZirconPaths:
    """
    On-disk layout rooted at a single directory.

    Constructed once per invocation and passed explicitly to every component
    that needs a path, which keeps all of them testable against a temporary
    directory.

    Attributes:
        root: The Zircon root directory
    """

    root: Path

    @classmethod
    def from_root(cls, root: Optional[Union[str, Path]] = None) -> "ZirconPaths":
        """Build a layout from an explicit root, or from get_zircon_root()."""
        if root is None:
            return cls(get_zircon_root())
        return cls(Path(root).expanduser())

    # Sources --------------------------------------------------------------

    @property
    def sources_dir(self) -> Path:
        return self.root / "sources"

    @property
    def org_dir(self) -> Path:
        return self.sources_dir / SOURCE_ORG

    def mirror_dir(self, project: str) -> Path:
        """Mirror directory for an upstream project (sources/<org>/<project>)."""
        return self.org_dir / project

    @property
    def zrc_source_dir(self) -> Path:
        return self.mirror_dir("zrc")

    @property
    def zircon_source_dir(self) -> Path:
        return self.mirror_dir("zircon")

    # Toolchains -----------------------------------------------------------

    @property
    def toolchains_dir(self) -> Path:
        return self.root / "toolchains"

    def toolchain_dir(self, name: str) -> Path:
        return self.toolchains_dir / validate_toolchain_name(name)

    def toolchain_bin_dir(self, name: str) -> Path:
        return self.toolchain_dir(name) / "bin"

    def toolchain_include_dir(self, name: str) -> Path:
        return self.toolchain_dir(name) / "include"

    def toolchain_binary(self, name: str, binary: str) -> Path:
        return self.toolchain_bin_dir(name) / executable_name(binary)

    @property
    def current_link(self) -> Path:
        return self.toolchains_dir / CURRENT_LINK_NAME

    # User-facing links ----------------------------------------------------

    @property
    def bin_dir(self) -> Path:
        return self.root / "bin"

    def binary_link(self, binary: str) -> Path:
        return self.bin_dir / executable_name(binary)

    @property
    def include_link(self) -> Path:
        return self.root / "include"

    # Working areas --------------------------------------------------------

    @property
    def staging_dir(self) -> Path:
        return self.root / "staging"

    @property
    def downloads_dir(self) -> Path:
        return self.root / "downloads"

    @property
    def lock_dir(self) -> Path:
        return self.root / "lock"

    @property
    def config_file(self) -> Path:
        return self.root / "config.yaml"

    @property
    def update_check_file(self) -> Path:
        return self.root / ".last_update_check"

    def ensure_directories(self) -> Path:
        """
        Create the root skeleton if it doesn't exist.

        Idempotent and safe to call on every invocation.

        Returns:
            Path: The root directory.

        Raises:
            DirectoryCreationError: If a directory cannot be created.
        """
        for directory in (
            self.org_dir,
            self.toolchains_dir,
            self.bin_dir,
            self.staging_dir,
            self.downloads_dir,
            self.lock_dir,
        ):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DirectoryCreationError(
                    f"Failed to create directory {directory}: {e}"
                ) from e

        return self.root


def verify_directory_writable(path: Path) -> bool:
    """
    Verify that a directory exists and is writable.

    Args:
        path: Directory path to verify.

    Returns:
        bool: True if directory exists and is writable, False otherwise.
    """
    if not path.is_dir():
        return False

    try:
        test_file = path / ".write_test"
        test_file.touch()
        test_file.unlink()
        return True
    except OSError:
        return False


__all__ = [
    "ROOT_ENV_VAR",
    "CURRENT_LINK_NAME",
    "ZirconPaths",
    "get_zircon_root",
    "executable_name",
    "validate_toolchain_name",
    "verify_directory_writable",
]
