"""
Shared utilities for CLI commands.

Provides common functionality used across multiple CLI commands to
eliminate duplication and ensure consistent behavior.
"""

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from ..core.config import ZirconConfig, load_config
from ..core.directory import ZirconPaths
from ..core.locking import LockManager

logger = logging.getLogger(__name__)


# ============================================================================
# Invocation Context
# ============================================================================


@dataclass
class CommandContext:
    """Objects shared by every component during one invocation."""

    paths: ZirconPaths
    config: ZirconConfig
    lock_manager: LockManager


def get_context(args) -> CommandContext:
    """
    Build (once per invocation) the paths, configuration and lock manager.

    The root comes from --root, then ZIRCON_PREFIX, then ~/.zircon. The
    configuration comes from --config or <root>/config.yaml.

    Args:
        args: Parsed command-line arguments

    Returns:
        CommandContext cached on args
    """
    context = getattr(args, "_context", None)
    if context is not None:
        return context

    paths = ZirconPaths.from_root(getattr(args, "root", None))

    explicit_config = getattr(args, "config", None)
    config_file = Path(explicit_config) if explicit_config else paths.config_file
    config = load_config(config_file, explicit=bool(explicit_config))

    context = CommandContext(
        paths=paths,
        config=config,
        lock_manager=LockManager(paths.lock_dir, timeout=config.lock_timeout),
    )
    args._context = context
    return context


# ============================================================================
# User Interface / Output Formatting
# ============================================================================


def confirm(
    prompt: str, assume_yes: bool = False, input_func: Callable[[str], str] = input
) -> bool:
    """
    Ask a yes/no question, defaulting to no.

    Args:
        prompt: Question to show (" (y/N): " is appended)
        assume_yes: Skip the prompt and answer yes
        input_func: Reads the answer (replaced in tests)

    Returns:
        True only for 'y' or 'yes'
    """
    if assume_yes:
        return True
    try:
        answer = input_func(f"{prompt} (y/N): ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def print_name_list(names: List[str], marker: Optional[str] = None) -> None:
    """Print names indented, suffixing the one equal to marker with '(current)'."""
    for name in names:
        if marker is not None and name == marker:
            safe_print(f"  {name} (current)")
        else:
            safe_print(f"  {name}")


def path_instructions(paths: ZirconPaths) -> str:
    """Shell snippet telling the user how to put <root>/bin on PATH."""
    if sys.platform == "win32":
        return f'  set PATH={paths.bin_dir};%PATH%'
    return f'  export PATH="{paths.bin_dir}:$PATH"'


def safe_print(message: str, file=None):
    """
    Print message with safe encoding handling for Windows console.

    Falls back to ASCII-safe characters if Unicode symbols can't be encoded.

    Args:
        message: Message to print
        file: Output file (default: stdout)
    """
    try:
        print(message, file=file)
    except UnicodeEncodeError:
        safe_message = (
            message.replace("✓", "[OK]")
            .replace("✗", "[ERROR]")
            .replace("⚠", "WARNING:")
            .replace("💡", "[TIP]")
        )
        print(safe_message, file=file)


__all__ = [
    "CommandContext",
    "get_context",
    "confirm",
    "print_name_list",
    "path_instructions",
    "safe_print",
]
