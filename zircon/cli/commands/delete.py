"""
Delete command implementation.
"""

import logging

from ...toolchain.registry import ToolchainRegistry
from ..utils import get_context, safe_print

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the delete command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    context = get_context(args)
    registry = ToolchainRegistry(context.paths, lock_manager=context.lock_manager)

    safe_print(f"Deleting toolchain: {args.version}")
    registry.delete(args.version)
    safe_print(f"✓ Toolchain '{args.version}' deleted")
    return 0
