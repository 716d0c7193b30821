"""Test fixtures for Zircon tests.

This package provides reusable helpers and pytest fixtures. They are
organized by type:

- toolchains: Toolchain directory trees and archives
- repositories: Throw-away git "upstream" repositories

Fixtures are registered in tests/conftest.py.
"""

__all__ = [
    "toolchains",
    "repositories",
]
