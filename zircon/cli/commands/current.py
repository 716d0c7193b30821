"""
Current command implementation.

Prints only the active toolchain name so scripts can consume it.
"""

import logging

from ...toolchain.registry import ToolchainRegistry
from ..utils import get_context

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the current command.

    Args:
        args: Parsed command-line arguments

    Returns:
        0 if a toolchain is active, 1 otherwise
    """
    context = get_context(args)
    current = ToolchainRegistry(context.paths).current()

    if current is None:
        logger.error("No toolchain is active. Use 'zircon switch <version>' to select one.")
        return 1

    print(current)
    return 0
