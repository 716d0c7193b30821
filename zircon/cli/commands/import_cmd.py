"""
Import command implementation.

Imports a toolchain from a local archive.
"""

import logging

from ...toolchain.importer import ToolchainImporter
from ..utils import get_context, safe_print

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the import command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    logger.debug(f"Arguments: {args}")
    context = get_context(args)

    importer = ToolchainImporter(
        context.paths,
        lock_manager=context.lock_manager,
        binaries=context.config.binaries,
    )
    result = importer.import_archive(
        args.archive, name=args.name, force=args.force, activate=args.switch
    )

    safe_print(f"✓ Imported toolchain: {result.name}")
    safe_print(f"  Toolchain location: {result.path}")
    if result.is_current:
        safe_print(f"✓ Switched to toolchain: {result.name}")
    else:
        safe_print(f"  Run 'zircon switch {result.name}' to use it.")
    return 0
