"""
Daily reminder when a newer Zircon is available.

The self mirror (sources/zirco-lang/zircon) is fetched at most once every
24 hours, tracked by the modification time of ``<root>/.last_update_check``.
A reminder is logged when origin/main has moved ahead of the checked-out
commit. Every failure is swallowed: this must never change a command's
outcome.
"""

import logging
import time
from pathlib import Path
from typing import Optional

from git import Repo

from ..source.repository import fetch
from .directory import ZirconPaths

logger = logging.getLogger(__name__)

CHECK_INTERVAL_SECONDS = 24 * 60 * 60
UPSTREAM_BRANCH = "refs/remotes/origin/main"


def should_check(stamp_file: Path, now: Optional[float] = None) -> bool:
    """True if the stamp file is missing or older than the check interval."""
    if now is None:
        now = time.time()
    try:
        modified = stamp_file.stat().st_mtime
    except OSError:
        return True
    return now - modified > CHECK_INTERVAL_SECONDS


def update_available(source_dir: Path) -> bool:
    """
    Fetch the self mirror and compare HEAD with origin/main.

    Returns:
        True if origin/main is a strict descendant of HEAD
    """
    repo = Repo(source_dir)
    local = repo.head.commit.hexsha

    try:
        fetch(repo, quiet=True)
    except Exception as e:
        logger.debug(f"Update check fetch failed: {e}")

    remote = repo.commit(UPSTREAM_BRANCH).hexsha
    if remote == local:
        return False
    return repo.is_ancestor(local, remote)


def check_for_updates(paths: ZirconPaths) -> bool:
    """
    Remind the user to update Zircon, at most once per day.

    Args:
        paths: Layout of the Zircon root

    Returns:
        True if a reminder was logged
    """
    try:
        stamp_file = paths.update_check_file
        if not should_check(stamp_file):
            return False

        reminded = False
        source_dir = paths.zircon_source_dir
        if source_dir.exists():
            if update_available(source_dir):
                logger.info(
                    "💡 Zircon update available! Re-run the bootstrap script to update.\n"
                )
                reminded = True

        stamp_file.parent.mkdir(parents=True, exist_ok=True)
        stamp_file.write_text("", encoding="utf-8")
        return reminded
    except Exception as e:
        logger.debug(f"Update check skipped: {e}")
        return False


__all__ = [
    "CHECK_INTERVAL_SECONDS",
    "should_check",
    "update_available",
    "check_for_updates",
]
