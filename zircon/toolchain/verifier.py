"""
Toolchain structure verification.

A toolchain directory is valid when it has a bin/ directory holding the
primary executable. Everything else (zircop, include/, hook/) is optional.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from ..core.directory import executable_name
from ..core.exceptions import InvalidToolchainStructureError

logger = logging.getLogger(__name__)

DEFAULT_PRIMARY_BINARY = "zrc"


@dataclass
class VerificationResult:
    """Result of inspecting a toolchain directory."""

    path: Path
    errors: List[str] = field(default_factory=list)
    binaries: List[str] = field(default_factory=list)
    has_include: bool = False

    @property
    def success(self) -> bool:
        return not self.errors


def inspect_toolchain(
    path: Path, primary_binary: str = DEFAULT_PRIMARY_BINARY
) -> VerificationResult:
    """Collect structural problems without raising."""
    result = VerificationResult(path=Path(path))
    bin_dir = result.path / "bin"

    if not bin_dir.is_dir():
        result.errors.append(f"missing bin/ directory in {result.path}")
        return result

    result.binaries = sorted(
        entry.name for entry in bin_dir.iterdir() if entry.is_file()
    )
    if not (bin_dir / executable_name(primary_binary)).is_file():
        result.errors.append(
            f"missing {executable_name(primary_binary)} in {bin_dir}"
        )

    result.has_include = (result.path / "include").is_dir()
    return result


def validate_toolchain_structure(
    path: Path, primary_binary: str = DEFAULT_PRIMARY_BINARY
) -> None:
    """
    Confirm a directory is a usable toolchain.

    Args:
        path: Toolchain directory (or a staging directory about to become one)
        primary_binary: Executable that must be present in bin/

    Raises:
        InvalidToolchainStructureError: If bin/ or the primary executable is missing
    """
    result = inspect_toolchain(path, primary_binary)
    if not result.success:
        raise InvalidToolchainStructureError(
            f"Invalid toolchain structure: {'; '.join(result.errors)}"
        )
    logger.debug(f"Verified toolchain structure: {path} ({', '.join(result.binaries)})")


__all__ = [
    "VerificationResult",
    "inspect_toolchain",
    "validate_toolchain_structure",
]
