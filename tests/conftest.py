"""
Pytest configuration and shared fixtures for Zircon tests.
"""

import logging

import pytest

# Import test fixtures to make them available to all tests
# ruff: noqa: F401
from tests.fixtures.toolchains import (
    zircon_paths,
    install_toolchain,
    release_archive,
)
from tests.fixtures.repositories import upstream


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_root(tmp_path, monkeypatch):
    """Point ZIRCON_PREFIX at a temporary directory so no test touches ~/.zircon."""
    root = tmp_path / "zircon"
    monkeypatch.setenv("ZIRCON_PREFIX", str(root))
    return root


@pytest.fixture(autouse=True)
def reset_caches():
    """Reset module-level caches between tests."""
    from zircon.core.platform import clear_platform_cache

    clear_platform_cache()
    yield
    clear_platform_cache()


@pytest.fixture(autouse=True)
def restore_logging():
    """CLI runs reconfigure the root logger; undo that after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
