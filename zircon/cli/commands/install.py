"""
Install command implementation.

Downloads a pre-built toolchain from GitHub releases.
"""

import logging

from ...core.download import DownloadProgress
from ...toolchain.installer import ReleaseInstaller
from ..utils import get_context, safe_print

logger = logging.getLogger(__name__)


def _log_progress(progress: DownloadProgress) -> None:
    logger.debug(str(progress))


def run(args) -> int:
    """
    Run the install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    logger.debug(f"Arguments: {args}")
    context = get_context(args)

    installer = ReleaseInstaller(
        context.paths, context.config, lock_manager=context.lock_manager
    )
    result = installer.install(
        args.tag,
        force=args.force,
        activate=args.switch,
        progress_callback=_log_progress,
    )

    safe_print(f"✓ Installed toolchain: {result.name}")
    if result.is_current:
        safe_print(f"✓ Switched to toolchain: {result.name}")
    else:
        safe_print(f"  Run 'zircon switch {result.name}' to use it.")
    return 0
