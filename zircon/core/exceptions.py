"""
Centralized exception hierarchy for Zircon.

Every error raised by Zircon derives from ZirconError so the CLI dispatcher
can report it uniformly and exit non-zero.
"""

from typing import Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class ZirconError(Exception):
    """Base exception for all Zircon errors."""

    pass


class ConfigurationError(ZirconError):
    """Raised when the configuration file is malformed."""

    pass


class UnsupportedPlatformError(ZirconError):
    """Raised when no pre-built toolchain exists for the current platform."""

    pass


# ============================================================================
# Directory / Filesystem Exceptions
# ============================================================================


class DirectoryError(ZirconError):
    """Base exception for directory-related errors."""

    pass


class DirectoryCreationError(DirectoryError):
    """Raised when directory creation fails."""

    pass


class LinkCreationError(ZirconError):
    """Failed to create a symbolic link or junction."""

    pass


class RegistryLockTimeout(ZirconError):
    """Raised when the root lock cannot be acquired within timeout."""

    pass


# ============================================================================
# Repository Exceptions
# ============================================================================


class RepositoryError(ZirconError):
    """Base exception for source mirror errors."""

    pass


class ReferenceNotFoundError(RepositoryError):
    """Raised when a branch, tag or commit cannot be resolved in the mirror."""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Could not find reference: {reference}")


class RepositoryCorruptError(RepositoryError):
    """Raised when a mirror path exists but is not a usable git repository."""

    pass


class NetworkFailureError(RepositoryError):
    """Raised when a clone, fetch or download fails."""

    pass


# ============================================================================
# Build Exceptions
# ============================================================================


class BuildFailedError(ZirconError):
    """Raised when the external build or install hook exits non-zero."""

    def __init__(self, message: str, exit_code: Optional[int] = None, output: str = ""):
        self.exit_code = exit_code
        self.output = output
        if exit_code is not None:
            message = f"{message} (exit code: {exit_code})"
        if output:
            message = f"{message}\n\n{output}"
        super().__init__(message)


# ============================================================================
# Archive Exceptions
# ============================================================================


class ArchiveError(ZirconError):
    """Base exception for archive extraction errors."""

    pass


class UnsupportedArchiveFormat(ArchiveError):
    """Archive format is not supported."""

    pass


class UnsafeArchiveEntryError(ArchiveError):
    """Archive contains an absolute path or a directory traversal attempt."""

    def __init__(self, entry: str, reason: str):
        self.entry = entry
        self.reason = reason
        super().__init__(
            f"Archive member '{entry}' {reason}. "
            "This is a security risk and extraction has been blocked."
        )


# ============================================================================
# Toolchain Exceptions
# ============================================================================


class ToolchainError(ZirconError):
    """Base exception for toolchain-related errors."""

    pass


class InvalidToolchainNameError(ToolchainError):
    """Raised when a toolchain name cannot be used as a directory name."""

    pass


class InvalidToolchainStructureError(ToolchainError):
    """Raised when a toolchain directory lacks bin/ or its primary executable."""

    pass


class ToolchainNotFoundError(ToolchainError):
    """Raised when a named toolchain is not installed."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Toolchain '{name}' not found.\n"
            f"Use 'zircon build {name}' or 'zircon install {name}' to install it."
        )


class CannotDeleteActiveError(ToolchainError):
    """Raised when attempting to remove the currently active toolchain."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Cannot delete '{name}' because it is the current toolchain.\n"
            "Switch to another toolchain first with 'zircon switch <version>'."
        )


class ToolchainAlreadyExistsError(ToolchainError):
    """Raised when a toolchain with the same name is already installed."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Toolchain '{name}' is already installed. "
            "Use --force to replace it, or 'zircon switch' to activate it."
        )


__all__ = [
    "ZirconError",
    "ConfigurationError",
    "UnsupportedPlatformError",
    "DirectoryError",
    "DirectoryCreationError",
    "LinkCreationError",
    "RegistryLockTimeout",
    "RepositoryError",
    "ReferenceNotFoundError",
    "RepositoryCorruptError",
    "NetworkFailureError",
    "BuildFailedError",
    "ArchiveError",
    "UnsupportedArchiveFormat",
    "UnsafeArchiveEntryError",
    "ToolchainError",
    "InvalidToolchainNameError",
    "InvalidToolchainStructureError",
    "ToolchainNotFoundError",
    "CannotDeleteActiveError",
    "ToolchainAlreadyExistsError",
]
