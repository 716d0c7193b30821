"""
Bootstrap command implementation.

Creates the Zircon root layout, clones the Zircon self mirror used for
update reminders, checks build dependencies and prints the next steps for a
new installation.
"""

import logging

from ...core.dependencies import warn_dependencies
from ...core.directory import verify_directory_writable
from ...core.exceptions import NetworkFailureError
from ...source.repository import clone_or_open
from ..utils import get_context, path_instructions, safe_print

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the bootstrap command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 if the root isn't writable)
    """
    context = get_context(args)
    paths = context.paths

    root = paths.ensure_directories()
    if not verify_directory_writable(root):
        logger.error(f"Zircon root is not writable: {root}")
        return 1

    safe_print(f"✓ Zircon root ready: {root}")

    try:
        clone_or_open(context.config.self_repo, paths.zircon_source_dir)
    except NetworkFailureError as e:
        logger.warning(f"⚠ Could not clone Zircon sources, update reminders are off: {e}")

    warn_dependencies()

    safe_print("\nNext steps:")
    safe_print("  1. Add Zircon's bin directory to your PATH:")
    safe_print(f"  {path_instructions(paths)}")
    safe_print("  2. Install a toolchain:")
    safe_print("       zircon install            (pre-built nightly)")
    safe_print("       zircon build main         (build from source)")
    return 0
