"""
Source mirror management for Zircon.

Keeps local git mirrors of the upstream projects and turns user-supplied
references into toolchain names.
"""

from .repository import (
    CheckoutResult,
    TransferProgress,
    checkout_ref,
    clone_or_open,
    current_commit,
    current_commit_short,
    fetch,
)
from .references import (
    RefKind,
    ToolchainRef,
    classify_reference,
    derive_toolchain_name,
    sanitize_branch_name,
)

__all__ = [
    "CheckoutResult",
    "TransferProgress",
    "checkout_ref",
    "clone_or_open",
    "current_commit",
    "current_commit_short",
    "fetch",
    "RefKind",
    "ToolchainRef",
    "classify_reference",
    "derive_toolchain_name",
    "sanitize_branch_name",
]
