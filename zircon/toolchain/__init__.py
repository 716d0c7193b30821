"""
Toolchain management module for Zircon.

This module provides functionality for:
- Building toolchains from source
- Installing pre-built releases and importing archives
- Listing, switching and deleting installed toolchains
"""

from .verifier import (
    VerificationResult,
    inspect_toolchain,
    validate_toolchain_structure,
)
from .registry import (
    PruneResult,
    ToolchainInfo,
    ToolchainRegistry,
)
from .linking import (
    ToolchainLinkManager,
    ToolchainSwitcher,
)
from .importer import (
    ImportResult,
    ToolchainImporter,
)
from .builder import (
    BuildResult,
    ToolchainBuilder,
)
from .installer import (
    ReleaseInstaller,
)

__all__ = [
    "VerificationResult",
    "inspect_toolchain",
    "validate_toolchain_structure",
    "PruneResult",
    "ToolchainInfo",
    "ToolchainRegistry",
    "ToolchainLinkManager",
    "ToolchainSwitcher",
    "ImportResult",
    "ToolchainImporter",
    "BuildResult",
    "ToolchainBuilder",
    "ReleaseInstaller",
]
