"""
List command implementation.
"""

import logging

from ...toolchain.registry import ToolchainRegistry
from ..utils import get_context, print_name_list, safe_print

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the list command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    context = get_context(args)
    registry = ToolchainRegistry(context.paths)
    toolchains = registry.list()

    if not toolchains:
        safe_print("No toolchains installed.")
        safe_print("Use 'zircon install' or 'zircon build <version>' to install one.")
        return 0

    safe_print("Installed toolchains:")
    current = next((t.name for t in toolchains if t.is_current), None)
    print_name_list([t.name for t in toolchains], marker=current)
    return 0
