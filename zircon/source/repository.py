"""
Git operations for managing source mirrors.

A mirror is cloned once and fetched on every later use. Reference
resolution follows a fixed precedence so that a freshly fetched remote
branch always wins over a stale local branch of the same name:

    1. refs/remotes/origin/<name>
    2. short-name resolution (refs/<name>, refs/tags/<name>,
       refs/heads/<name>, refs/remotes/<name>)
    3. a literal commit hash
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from git import Repo, RemoteProgress
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from ..core.exceptions import (
    NetworkFailureError,
    ReferenceNotFoundError,
    RepositoryCorruptError,
)

logger = logging.getLogger(__name__)

REMOTE_NAME = "origin"
SHORT_COMMIT_LENGTH = 8

FETCH_REFSPECS = [
    f"+refs/heads/*:refs/remotes/{REMOTE_NAME}/*",
    "+refs/tags/*:refs/tags/*",
]

_HEX_RE = re.compile(r"^[0-9a-fA-F]{4,40}$")


class TransferProgress(RemoteProgress):
    """Logs clone/fetch progress (received objects, resolving deltas)."""

    _STAGES = {
        RemoteProgress.COUNTING: "Counting objects",
        RemoteProgress.COMPRESSING: "Compressing objects",
        RemoteProgress.RECEIVING: "Received objects",
        RemoteProgress.RESOLVING: "Resolving deltas",
        RemoteProgress.WRITING: "Writing objects",
        RemoteProgress.CHECKING_OUT: "Checking out files",
    }

    def update(self, op_code, cur_count, max_count=None, message=""):
        stage = self._STAGES.get(op_code & RemoteProgress.OP_MASK)
        if stage is None:
            return

        if max_count:
            progress = f"{stage} {int(cur_count)}/{int(max_count)}"
        else:
            progress = f"{stage} {int(cur_count)}"

        if op_code & RemoteProgress.END:
            logger.info(progress)
        else:
            logger.debug(progress)


@dataclass(frozen=True)
class CheckoutResult:
    """Outcome of checkout_ref()."""

    reference: str
    """The name the user asked for"""

    resolved_ref: Optional[str]
    """Full reference name that matched, or None for a bare commit"""

    commit: str
    """Full hex SHA that was checked out"""

    branch: Optional[str]
    """Local branch HEAD is attached to, or None when detached"""

    @property
    def detached(self) -> bool:
        return self.branch is None


# ============================================================================
# Mirror lifecycle
# ============================================================================


def clone_or_open(url: str, path: Path) -> Repo:
    """
    Clone a repository or open it if it already exists.

    Args:
        url: Upstream repository URL
        path: Mirror location

    Returns:
        The mirror repository

    Raises:
        RepositoryCorruptError: If path exists but is not a git repository
        NetworkFailureError: If the clone fails
    """
    path = Path(path)

    if path.exists():
        try:
            repo = Repo(path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise RepositoryCorruptError(
                f"{path} exists but is not a valid git repository. "
                "Remove it and try again."
            ) from e
        if repo.bare:
            raise RepositoryCorruptError(f"{path} is a bare repository, expected a mirror")
        logger.debug(f"Opened existing mirror: {path}")
        return repo

    logger.info(f"Cloning {url}...")
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        repo = Repo.clone_from(url, path, progress=TransferProgress())
    except GitCommandError as e:
        raise NetworkFailureError(f"Failed to clone {url}: {e}") from e

    logger.info("Clone complete")
    return repo


def fetch(repo: Repo, quiet: bool = False) -> None:
    """
    Update every remote-tracking branch and tag from origin.

    A failed fetch leaves the mirror as it was; git's own ref updates are
    atomic per reference.

    Args:
        repo: Mirror repository
        quiet: Log at debug level and skip transfer progress

    Raises:
        RepositoryCorruptError: If the mirror has no origin remote
        NetworkFailureError: If the fetch fails
    """
    try:
        remote = repo.remote(REMOTE_NAME)
    except ValueError as e:
        raise RepositoryCorruptError(
            f"Mirror {repo.working_dir} has no '{REMOTE_NAME}' remote"
        ) from e

    log = logger.debug if quiet else logger.info
    log("Fetching updates...")
    try:
        remote.fetch(refspec=FETCH_REFSPECS, progress=None if quiet else TransferProgress())
    except GitCommandError as e:
        raise NetworkFailureError(f"Failed to fetch from {REMOTE_NAME}: {e}") from e
    log("Fetch complete")


# ============================================================================
# Reference lookup
# ============================================================================


def ref_exists(repo: Repo, full_ref: str) -> bool:
    """Check whether a fully-qualified reference (e.g. 'refs/tags/v1') exists."""
    try:
        repo.git.show_ref("--verify", "--quiet", full_ref)
        return True
    except GitCommandError:
        return False


def resolve_commit(repo: Repo, revision: str) -> Optional[str]:
    """Resolve a revision to a full commit SHA, or None if it names no commit."""
    if revision.startswith("-"):
        return None
    try:
        return repo.git.rev_parse("--verify", "--quiet", f"{revision}^{{commit}}")
    except GitCommandError:
        return None


def resolve_short_name(repo: Repo, name: str) -> Optional[str]:
    """
    Resolve a short reference name the way git does.

    Returns:
        The first existing full reference name among refs/<name>,
        refs/tags/<name>, refs/heads/<name>, refs/remotes/<name> and
        refs/remotes/<name>/HEAD, or None
    """
    if not name or name.startswith("-"):
        return None

    candidates = [
        f"refs/{name}",
        f"refs/tags/{name}",
        f"refs/heads/{name}",
        f"refs/remotes/{name}",
        f"refs/remotes/{name}/HEAD",
    ]
    if name.startswith("refs/"):
        candidates.insert(0, name)

    for candidate in candidates:
        if ref_exists(repo, candidate):
            return candidate
    return None


def looks_like_commit(name: str) -> bool:
    """True if name is a 4-40 character hex string."""
    return bool(_HEX_RE.match(name))


# ============================================================================
# Checkout
# ============================================================================


def checkout_ref(repo: Repo, ref_name: str) -> CheckoutResult:
    """
    Check out a branch, tag or commit.

    Branches are checked out as a local branch reset to the resolved commit,
    so HEAD is attached and matches the fetched state. Tags and bare commits
    leave HEAD detached.

    Args:
        repo: Mirror repository (already fetched)
        ref_name: Branch, tag or commit hash

    Returns:
        CheckoutResult describing what was checked out

    Raises:
        ReferenceNotFoundError: If nothing matches ref_name
    """
    resolved_ref = None
    branch = None

    remote_ref = f"refs/remotes/{REMOTE_NAME}/{ref_name}"
    if not ref_name.startswith("-") and ref_exists(repo, remote_ref):
        resolved_ref = remote_ref
        branch = ref_name
    else:
        resolved_ref = resolve_short_name(repo, ref_name)
        if resolved_ref is not None and resolved_ref.startswith("refs/heads/"):
            branch = resolved_ref[len("refs/heads/"):]

    if resolved_ref is not None:
        commit = resolve_commit(repo, resolved_ref)
        if commit is None:
            raise ReferenceNotFoundError(ref_name)
    elif looks_like_commit(ref_name):
        commit = resolve_commit(repo, ref_name)
        if commit is None:
            raise ReferenceNotFoundError(ref_name)
    else:
        raise ReferenceNotFoundError(ref_name)

    try:
        if branch is not None:
            repo.git.checkout("--force", "-B", branch, commit)
        else:
            repo.git.checkout("--force", "--detach", commit)
    except GitCommandError as e:
        raise RepositoryCorruptError(f"Failed to check out {ref_name}: {e}") from e

    logger.info(f"Checked out: {ref_name} ({commit[:SHORT_COMMIT_LENGTH]})")
    return CheckoutResult(
        reference=ref_name, resolved_ref=resolved_ref, commit=commit, branch=branch
    )


def current_commit(repo: Repo) -> str:
    """Full hex SHA of the checked-out commit."""
    return repo.head.commit.hexsha


def current_commit_short(repo: Repo) -> str:
    """The checked-out commit's hash truncated to 8 hex characters."""
    return current_commit(repo)[:SHORT_COMMIT_LENGTH]


__all__ = [
    "REMOTE_NAME",
    "SHORT_COMMIT_LENGTH",
    "TransferProgress",
    "CheckoutResult",
    "clone_or_open",
    "fetch",
    "ref_exists",
    "resolve_commit",
    "resolve_short_name",
    "looks_like_commit",
    "checkout_ref",
    "current_commit",
    "current_commit_short",
]
