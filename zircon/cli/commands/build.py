"""
Build command implementation.

Builds zrc from a branch, tag or commit and switches to it.
"""

import logging

from ...toolchain.builder import ToolchainBuilder
from ..utils import get_context, path_instructions, safe_print

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the build command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    logger.debug(f"Arguments: {args}")
    context = get_context(args)

    builder = ToolchainBuilder(
        context.paths, context.config, lock_manager=context.lock_manager
    )
    result = builder.build(
        args.reference,
        repo_url=args.repo_url,
        force=args.force,
        activate=not args.no_switch,
    )

    if result.is_current:
        safe_print("\nTo use zrc, add to your PATH:")
        safe_print(path_instructions(context.paths))
    else:
        safe_print(f"\nRun 'zircon switch {result.name}' to use it.")

    return 0
