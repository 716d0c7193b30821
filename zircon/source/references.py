"""
Reference classification and toolchain naming.

A user-supplied reference is classified as exactly one of tag, branch or
commit, and the classification decides the toolchain name:

    Tag("v0.1.0")           -> "v0.1.0"
    Branch("feature/x")     -> "feature-x@1a2b3c4d"
    Commit("1a2b3c4d...")   -> "1a2b3c4d"

Classification never fails: an unrecognised reference falls back to a
branch so that a build is never refused for ambiguity.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from git import Repo

from .repository import (
    REMOTE_NAME,
    current_commit_short,
    looks_like_commit,
    ref_exists,
    resolve_commit,
    resolve_short_name,
)

logger = logging.getLogger(__name__)


class RefKind(Enum):
    """Kind of source-control reference a toolchain was built from."""

    TAG = "tag"
    BRANCH = "branch"
    COMMIT = "commit"


@dataclass(frozen=True)
class ToolchainRef:
    """A classified reference."""

    kind: RefKind
    value: str

    def toolchain_name(self, short_commit: str) -> str:
        """
        Derive the canonical toolchain name.

        Args:
            short_commit: 8-hex prefix of the checked-out commit

        Returns:
            The tag verbatim, "<sanitized branch>@<short commit>", or the
            short commit itself
        """
        if self.kind is RefKind.TAG:
            return self.value
        if self.kind is RefKind.BRANCH:
            return f"{sanitize_branch_name(self.value)}@{short_commit}"
        return short_commit

    def __str__(self) -> str:
        return f"{self.kind.value} {self.value}"


def sanitize_branch_name(branch: str) -> str:
    """Replace path separators so a branch name is a single path component."""
    return branch.replace("/", "-").replace("\\", "-")


def classify_reference(repo: Repo, raw: str) -> ToolchainRef:
    """
    Classify a raw reference string against a fetched mirror.

    Probes, in order: tag, local or remote-tracking branch, commit hash,
    git short-name resolution, and finally falls back to a branch.
    """
    if ref_exists(repo, f"refs/tags/{raw}"):
        return ToolchainRef(RefKind.TAG, raw)

    if ref_exists(repo, f"refs/heads/{raw}") or ref_exists(
        repo, f"refs/remotes/{REMOTE_NAME}/{raw}"
    ):
        return ToolchainRef(RefKind.BRANCH, raw)

    if looks_like_commit(raw):
        commit = resolve_commit(repo, raw)
        if commit is not None:
            return ToolchainRef(RefKind.COMMIT, commit)

    resolved = resolve_short_name(repo, raw)
    if resolved is not None:
        if resolved.startswith("refs/tags/"):
            return ToolchainRef(RefKind.TAG, raw)
        if resolved.startswith(("refs/heads/", "refs/remotes/")):
            return ToolchainRef(RefKind.BRANCH, raw)

    logger.debug(f"Could not classify '{raw}', treating it as a branch")
    return ToolchainRef(RefKind.BRANCH, raw)


def derive_toolchain_name(repo: Repo, raw: str) -> Tuple[ToolchainRef, str]:
    """
    Classify a reference that is already checked out and name its toolchain.

    Returns:
        The classified reference and the toolchain name

    Example:
        >>> checkout_ref(repo, "main")
        >>> derive_toolchain_name(repo, "main")
        (ToolchainRef(kind=<RefKind.BRANCH: 'branch'>, value='main'), 'main@1a2b3c4d')
    """
    ref = classify_reference(repo, raw)
    name = ref.toolchain_name(current_commit_short(repo))
    logger.debug(f"Reference '{raw}' classified as {ref.kind.value}: {name}")
    return ref, name


__all__ = [
    "RefKind",
    "ToolchainRef",
    "sanitize_branch_name",
    "classify_reference",
    "derive_toolchain_name",
]
