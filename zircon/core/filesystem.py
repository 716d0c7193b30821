"""
Cross-platform file system utilities for Zircon.

This module provides the filesystem operations the toolchain lifecycle is
built on:
- Archive extraction (tar, tar.gz, tar.xz, tar.bz2, zip) with strict
  rejection of absolute paths and directory traversal
- Safe deletion constrained to a required prefix
- Path utilities

Link creation lives in zircon.toolchain.linking, which selects a single
platform backend per instance.
"""

import logging
import os
import shutil
import stat
import sys
import tarfile
import zipfile
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Callable, Optional, Union

from .exceptions import (
    ArchiveError,
    UnsafeArchiveEntryError,
    UnsupportedArchiveFormat,
    ZirconError,
)

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = os.name == "nt"
IS_UNIX = not IS_WINDOWS

# Suffix -> tarfile open mode ("zip" handled separately)
ARCHIVE_FORMATS = {
    ".tar.gz": "r:gz",
    ".tgz": "r:gz",
    ".tar.xz": "r:xz",
    ".tar.bz2": "r:bz2",
    ".tbz2": "r:bz2",
    ".tar": "r:",
    ".zip": "zip",
}


class FilesystemError(ZirconError):
    """Base exception for filesystem operations."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to (under) parent directory.

    Args:
        path: Path to check
        parent: Parent directory

    Returns:
        True if path is under parent directory

    Example:
        >>> is_relative_to(Path("/home/user/project/file.txt"), Path("/home/user"))
        True
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def archive_suffix(archive_path: Union[str, Path]) -> Optional[str]:
    """
    Return the recognised archive suffix of a file name, or None.

    Example:
        >>> archive_suffix("zrc-linux-x64.tar.gz")
        '.tar.gz'
    """
    name = Path(archive_path).name.lower()
    # Longest suffixes first so ".tar.gz" wins over ".gz"-less ".tar"
    for suffix in sorted(ARCHIVE_FORMATS, key=len, reverse=True):
        if name.endswith(suffix):
            return suffix
    return None


def strip_archive_suffix(archive_path: Union[str, Path]) -> str:
    """Return the archive file name without its archive suffix."""
    name = Path(archive_path).name
    suffix = archive_suffix(name)
    if suffix:
        return name[: -len(suffix)]
    return name


# ============================================================================
# Archive Extraction
# ============================================================================


def validate_archive_member(name: str) -> PurePosixPath:
    """
    Validate that an archive member path is safe to extract.

    Both checks are made on the stored path itself, before it is joined to
    the destination, so nothing is written for a rejected archive.

    Args:
        name: Member path as stored in the archive

    Returns:
        The member path as a relative PurePosixPath

    Raises:
        UnsafeArchiveEntryError: If the path is absolute or contains '..'
    """
    normalized = name.replace("\\", "/")

    if (
        normalized.startswith("/")
        or PurePosixPath(normalized).is_absolute()
        or PureWindowsPath(name).is_absolute()
        or PureWindowsPath(name).drive
    ):
        raise UnsafeArchiveEntryError(name, "has an absolute path")

    parts = PurePosixPath(normalized).parts
    if ".." in parts:
        raise UnsafeArchiveEntryError(name, "attempts directory traversal")

    return PurePosixPath(*[p for p in parts if p not in ("", ".")])


def _validate_link_target(member: tarfile.TarInfo) -> None:
    """Reject tar symlinks/hardlinks that could point outside the destination."""
    target = member.linkname.replace("\\", "/")
    if target.startswith("/") or PureWindowsPath(member.linkname).drive:
        raise UnsafeArchiveEntryError(member.name, "links to an absolute path")
    if ".." in PurePosixPath(target).parts:
        raise UnsafeArchiveEntryError(member.name, "links outside the archive")


def extract_archive(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> None:
    """
    Extract an archive to a destination directory.

    Automatically detects archive format from the file name and validates
    every member before anything is written.

    Supported formats:
    - .tar
    - .tar.gz, .tgz
    - .tar.xz
    - .tar.bz2, .tbz2
    - .zip

    Args:
        archive_path: Path to the archive file
        destination: Directory to extract to
        progress_callback: Optional callback(current, total) for progress

    Raises:
        UnsupportedArchiveFormat: If archive format is not recognized
        UnsafeArchiveEntryError: If archive contains malicious paths
        ArchiveError: If extraction fails

    Example:
        >>> extract_archive('zrc-linux-x64.tar.gz', '/tmp/zrc')
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveError(f"Archive not found: {archive_path}")

    suffix = archive_suffix(archive_path)
    if suffix is None:
        raise UnsupportedArchiveFormat(
            f"Unsupported archive format: {archive_path.name}. "
            "Supported: .tar, .tar.gz, .tgz, .tar.xz, .tar.bz2, .zip"
        )

    destination.mkdir(parents=True, exist_ok=True)

    try:
        if ARCHIVE_FORMATS[suffix] == "zip":
            _extract_zip(archive_path, destination, progress_callback)
        else:
            _extract_tar(
                archive_path, destination, ARCHIVE_FORMATS[suffix], progress_callback
            )
    except (UnsafeArchiveEntryError, UnsupportedArchiveFormat):
        raise
    except (OSError, tarfile.TarError, zipfile.BadZipFile) as e:
        raise ArchiveError(f"Failed to extract {archive_path}: {e}") from e


def _extract_zip(
    archive_path: Path,
    destination: Path,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> None:
    """Extract a ZIP archive, restoring Unix permission bits."""
    with zipfile.ZipFile(archive_path, "r") as zf:
        members = zf.infolist()
        total = len(members)

        # Validate all paths first
        validated = [(info, validate_archive_member(info.filename)) for info in members]

        for i, (info, relative) in enumerate(validated):
            target = destination.joinpath(*relative.parts)

            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst)

                mode = (info.external_attr >> 16) & 0o777
                if IS_UNIX and mode:
                    os.chmod(target, mode)

            if progress_callback:
                progress_callback(i + 1, total)


def _extract_tar(
    archive_path: Path,
    destination: Path,
    mode: str,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> None:
    """Extract a tar archive with specified compression."""
    with tarfile.open(archive_path, mode) as tar:
        members = tar.getmembers()
        total = len(members)

        # Validate all paths first
        for member in members:
            validate_archive_member(member.name)
            if member.issym() or member.islnk():
                _validate_link_target(member)
            elif member.isdev() or member.isfifo():
                raise UnsafeArchiveEntryError(
                    member.name, "is a device or FIFO entry"
                )

        for i, member in enumerate(members):
            relative = validate_archive_member(member.name)
            target = destination.joinpath(*relative.parts)

            if member.isdir():
                target.mkdir(parents=True, exist_ok=True)
            elif member.issym():
                target.parent.mkdir(parents=True, exist_ok=True)
                if target.exists() or target.is_symlink():
                    target.unlink()
                os.symlink(member.linkname, target)
            elif member.islnk():
                link_source = destination.joinpath(
                    *validate_archive_member(member.linkname).parts
                )
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(link_source, target)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                source = tar.extractfile(member)
                if source is None:
                    raise ArchiveError(f"Cannot read archive member: {member.name}")
                with source, open(target, "wb") as dst:
                    shutil.copyfileobj(source, dst)

                if IS_UNIX:
                    os.chmod(target, member.mode & 0o777)

            if progress_callback:
                progress_callback(i + 1, total)


# ============================================================================
# Safe File Operations
# ============================================================================


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Symbolic links are never followed: a link passed as ``path`` is refused
    so that removing it cannot delete the directory it points to.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails

    Example:
        >>> safe_rmtree('/home/user/.zircon/toolchains/v0.1.0',
        ...             require_prefix='/home/user/.zircon/toolchains')
    """
    path = Path(path)

    if path.is_symlink():
        raise FilesystemError(f"Refusing to recursively delete a link: {path}")

    path = path.resolve()

    # Safety check: require path to be under specified prefix
    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if path == require_prefix or not is_relative_to(path, require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return  # Already gone, nothing to do

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    def handle_remove_readonly(func, failed_path, _exc):
        """Clear read-only bits (Windows, unwritable build outputs) and retry."""
        os.chmod(failed_path, stat.S_IWRITE | stat.S_IREAD | stat.S_IEXEC)
        func(failed_path)

    try:
        if sys.version_info >= (3, 12):
            shutil.rmtree(path, onexc=handle_remove_readonly)
        else:
            shutil.rmtree(path, onerror=handle_remove_readonly)
    except OSError as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def copy_tree(source: Path, destination: Path) -> None:
    """
    Recursively copy a directory tree, preserving metadata.

    Raises:
        FilesystemError: If source is missing or not a directory
    """
    if not source.is_dir():
        raise FilesystemError(f"Source is not a directory: {source}")

    destination.mkdir(parents=True, exist_ok=True)

    for item in source.rglob("*"):
        dest_item = destination / item.relative_to(source)
        if item.is_dir():
            dest_item.mkdir(parents=True, exist_ok=True)
        else:
            dest_item.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(item, dest_item)


def make_executable(path: Path) -> None:
    """Set mode 0755 on a file (no-op on Windows)."""
    if IS_UNIX:
        os.chmod(path, 0o755)


__all__ = [
    "IS_WINDOWS",
    "IS_UNIX",
    "FilesystemError",
    "is_relative_to",
    "archive_suffix",
    "strip_archive_suffix",
    "validate_archive_member",
    "extract_archive",
    "safe_rmtree",
    "copy_tree",
    "make_executable",
]
