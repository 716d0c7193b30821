"""
Prune command implementation.

Deletes every installed toolchain except the active one, after confirmation.
"""

import logging

from ...toolchain.registry import ToolchainRegistry
from ..utils import confirm, get_context, print_name_list, safe_print

logger = logging.getLogger(__name__)


def run(args, input_func=input) -> int:
    """
    Run the prune command.

    Args:
        args: Parsed command-line arguments
        input_func: Reads the confirmation answer

    Returns:
        Exit code (0 for success, 1 if any deletion failed)
    """
    context = get_context(args)
    registry = ToolchainRegistry(context.paths, lock_manager=context.lock_manager)

    to_prune = registry.prunable()
    if not to_prune:
        safe_print("No toolchains to prune.")
        return 0

    safe_print("The following toolchains will be deleted:")
    print_name_list(to_prune)

    if not confirm("\nContinue?", assume_yes=args.yes, input_func=input_func):
        safe_print("Cancelled.")
        return 0

    result = registry.prune(to_prune)
    for name in result.removed:
        safe_print(f"  ✓ Deleted {name}")
    for name in result.failed:
        safe_print(f"  ✗ Failed to delete {name}: {result.errors[name]}")

    if not result.success:
        logger.error(f"{len(result.failed)} toolchain(s) could not be deleted")
        return 1

    safe_print(f"\n✓ Pruned {len(result.removed)} toolchain(s)")
    return 0
