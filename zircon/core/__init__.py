"""
Core functionality for Zircon.

This package contains the foundational modules that other components depend on.
"""

from .directory import (
    ZirconPaths,
    get_zircon_root,
    executable_name,
    validate_toolchain_name,
    verify_directory_writable,
)

from .config import (
    ZirconConfig,
    load_config,
)

from .locking import (
    LockManager,
)

from .platform import (
    PlatformInfo,
    detect_platform,
    release_artifact_name,
    clear_platform_cache,
)

from .exceptions import (
    ZirconError,
    ConfigurationError,
    UnsupportedPlatformError,
    DirectoryError,
    DirectoryCreationError,
    LinkCreationError,
    RegistryLockTimeout,
    RepositoryError,
    ReferenceNotFoundError,
    RepositoryCorruptError,
    NetworkFailureError,
    BuildFailedError,
    ArchiveError,
    UnsupportedArchiveFormat,
    UnsafeArchiveEntryError,
    ToolchainError,
    InvalidToolchainNameError,
    InvalidToolchainStructureError,
    ToolchainNotFoundError,
    CannotDeleteActiveError,
    ToolchainAlreadyExistsError,
)

__all__ = [
    "ZirconPaths",
    "get_zircon_root",
    "executable_name",
    "validate_toolchain_name",
    "verify_directory_writable",
    "ZirconConfig",
    "load_config",
    "LockManager",
    "PlatformInfo",
    "detect_platform",
    "release_artifact_name",
    "clear_platform_cache",
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
