"""
Switch command implementation.
"""

import logging

from ...toolchain.linking import ToolchainSwitcher
from ..utils import get_context, safe_print

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the switch command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    context = get_context(args)
    switcher = ToolchainSwitcher(
        context.paths,
        lock_manager=context.lock_manager,
        binaries=context.config.binaries,
    )
    switcher.switch(args.version)

    safe_print(f"✓ Switched to toolchain: {args.version}")
    return 0
