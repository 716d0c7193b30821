"""
Best-effort checks for the native build dependencies of zrc.

zrc links against LLVM 20 and needs clang to link its output. Nothing here
ever raises: results are reported through the logger so a missing
dependency never stops a command.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

REQUIRED_LLVM_MAJOR = "20"

LLVM_CONFIG_CANDIDATES = [
    "llvm-config",
    # Debian/Ubuntu
    "llvm-config-20",
    # MacPorts
    "llvm-config-mp-20",
    # Homebrew (Intel)
    "/usr/local/opt/llvm@20/bin/llvm-config",
    "/usr/local/opt/llvm/bin/llvm-config",
    # Homebrew (Apple Silicon)
    "/opt/homebrew/opt/llvm@20/bin/llvm-config",
    "/opt/homebrew/opt/llvm/bin/llvm-config",
]

LLVM_INSTALL_HINT = (
    "Install instructions:\n"
    "    - macOS (Homebrew): brew install llvm@20\n"
    "    - macOS (MacPorts): sudo port install llvm-20\n"
    "    - Ubuntu/Debian: sudo apt install llvm-20 llvm-20-dev\n"
    "    - Windows: Download from https://releases.llvm.org/"
)


@dataclass
class DependencyStatus:
    """Result of probing one dependency."""

    name: str
    found: bool
    version: Optional[str] = None
    location: Optional[str] = None
    message: str = ""


def _run_version(command: str, *args: str) -> Optional[str]:
    """Run '<command> <args>' and return stripped stdout, or None on any failure."""
    try:
        result = subprocess.run(
            [command, *args],
            capture_output=True,
            text=True,
            timeout=5,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Could not run {command}: {e}")
        return None

    if result.returncode != 0:
        logger.debug(f"{command} {' '.join(args)} returned {result.returncode}")
        return None
    return result.stdout.strip()


def check_llvm() -> DependencyStatus:
    """Look for an llvm-config reporting LLVM 20.x."""
    for candidate in LLVM_CONFIG_CANDIDATES:
        version = _run_version(candidate, "--version")
        if not version:
            continue
        if version.startswith(f"{REQUIRED_LLVM_MAJOR}."):
            return DependencyStatus("LLVM", True, version=version, location=candidate)
        logger.warning(
            f"Found LLVM {version} at '{candidate}', "
            f"but Zirco requires LLVM {REQUIRED_LLVM_MAJOR}.x"
        )

    return DependencyStatus(
        "LLVM",
        False,
        message=(
            f"LLVM {REQUIRED_LLVM_MAJOR} not found. Zirco REQUIRES LLVM "
            f"{REQUIRED_LLVM_MAJOR}.x specifically.\n  {LLVM_INSTALL_HINT}"
        ),
    )


def check_clang() -> DependencyStatus:
    """Look for clang on PATH."""
    output = _run_version("clang", "--version")
    if output:
        first_line = output.splitlines()[0]
        return DependencyStatus("clang", True, version=first_line, location="clang")
    return DependencyStatus("clang", False, message="clang not found. Please install clang")


def warn_dependencies() -> None:
    """Log the state of LLVM and clang. Never raises."""
    logger.info("Checking dependencies...")

    try:
        llvm = check_llvm()
        if llvm.found:
            logger.info(f"✓ LLVM {REQUIRED_LLVM_MAJOR} found: {llvm.version}")
        else:
            logger.warning(f"✗ {llvm.message}")

        clang = check_clang()
        if clang.found:
            logger.info(f"✓ clang found: {clang.version}")
        else:
            logger.warning(f"⚠ {clang.message}")
            logger.warning("  You may encounter build errors without clang.")
    except Exception as e:
        logger.debug(f"Dependency check failed: {e}")


__all__ = [
    "DependencyStatus",
    "LLVM_CONFIG_CANDIDATES",
    "check_llvm",
    "check_clang",
    "warn_dependencies",
]
