"""
Tests for building toolchains from a (local) zrc repository.

The upstream fixture stands in for the zrc repository; the build command
is replaced by a trivial shell command so no Rust toolchain is needed.
"""

import os
import shutil
import sys
from unittest.mock import patch

import pytest

from zircon.core.config import ZirconConfig
from zircon.core.exceptions import (
    BuildFailedError,
    CannotDeleteActiveError,
    ReferenceNotFoundError,
    ToolchainAlreadyExistsError,
)
from zircon.core.platform import PlatformInfo
from zircon.source.references import RefKind
from zircon.toolchain.builder import ToolchainBuilder
from zircon.toolchain.linking import ToolchainLinkManager
from zircon.toolchain.registry import ToolchainRegistry

from tests.fixtures.toolchains import tree_snapshot

pytestmark = pytest.mark.skipif(
    sys.platform == "win32" or shutil.which("bash") is None,
    reason="install hooks need bash",
)

INSTALL_HOOK = """set -e
mkdir -p "$TOOLCHAIN_DIR/bin" "$TOOLCHAIN_DIR/include"
printf '#!/bin/sh\\necho zrc\\n' > "$TOOLCHAIN_DIR/bin/zrc"
chmod +x "$TOOLCHAIN_DIR/bin/zrc"
cp -R include/. "$TOOLCHAIN_DIR/include/"
"""

FAILING_HOOK = """mkdir -p "$TOOLCHAIN_DIR/bin"
touch "$TOOLCHAIN_DIR/bin/zrc"
exit 3
"""


@pytest.fixture(autouse=True)
def no_dependency_probe():
    with patch("zircon.toolchain.builder.warn_dependencies"):
        yield


@pytest.fixture
def zrc_upstream(upstream):
    """Upstream with an install hook and headers."""
    upstream.commit(
        "add install hook",
        {"hook/install.sh": INSTALL_HOOK, "include/zrc.zh": "// zrc\n"},
    )
    return upstream


def make_builder(paths, upstream, build_command=("true",)):
    config = ZirconConfig(toolchain_repo=upstream.url, build_command=list(build_command))
    return ToolchainBuilder(
        paths,
        config=config,
        link_manager=ToolchainLinkManager(paths, PlatformInfo("linux", "x64")),
    )


class TestBuild:
    def test_build_branch_and_activate(self, zircon_paths, zrc_upstream):
        sha = zrc_upstream.repo.head.commit.hexsha
        builder = make_builder(zircon_paths, zrc_upstream)

        result = builder.build("main")

        assert result.name == f"main@{sha[:8]}"
        assert result.commit == sha
        assert result.reference.kind is RefKind.BRANCH
        assert result.is_current
        assert ToolchainRegistry(zircon_paths).current() == result.name
        assert os.access(zircon_paths.binary_link("zrc"), os.X_OK)
        assert (zircon_paths.include_link / "zrc.zh").is_file()

    def test_build_tag_without_switch(self, zircon_paths, zrc_upstream):
        zrc_upstream.tag("v0.1.0")
        builder = make_builder(zircon_paths, zrc_upstream)

        result = builder.build("v0.1.0", activate=False)

        assert result.name == "v0.1.0"
        assert not result.is_current
        assert ToolchainRegistry(zircon_paths).current() is None

    def test_build_commit(self, zircon_paths, zrc_upstream):
        sha = zrc_upstream.repo.head.commit.hexsha
        result = make_builder(zircon_paths, zrc_upstream).build(sha[:12])
        assert result.name == sha[:8]

    def test_repo_url_override(self, zircon_paths, zrc_upstream):
        builder = ToolchainBuilder(
            zircon_paths,
            config=ZirconConfig(
                toolchain_repo="https://unused.invalid/zrc.git", build_command=["true"]
            ),
            link_manager=ToolchainLinkManager(zircon_paths, PlatformInfo("linux", "x64")),
        )
        result = builder.build("main", repo_url=zrc_upstream.url, activate=False)
        assert result.name.startswith("main@")

    def test_already_installed(self, zircon_paths, zrc_upstream):
        builder = make_builder(zircon_paths, zrc_upstream)
        builder.build("main", activate=False)

        with pytest.raises(ToolchainAlreadyExistsError):
            builder.build("main")

    def test_force_rebuild(self, zircon_paths, zrc_upstream):
        zrc_upstream.tag("v0.1.0")
        builder = make_builder(zircon_paths, zrc_upstream)
        builder.build("v0.1.0", activate=False)

        result = builder.build("v0.1.0", force=True, activate=False)

        assert (result.path / "bin" / "zrc").is_file()
        assert not (zircon_paths.staging_dir / "v0.1.0.previous").exists()

    def test_force_refuses_active(self, zircon_paths, zrc_upstream):
        builder = make_builder(zircon_paths, zrc_upstream)
        builder.build("main")

        with pytest.raises(CannotDeleteActiveError):
            builder.build("main", force=True)

    def test_missing_reference(self, zircon_paths, zrc_upstream):
        with pytest.raises(ReferenceNotFoundError):
            make_builder(zircon_paths, zrc_upstream).build("no-such-ref")


class TestBuildFailures:
    def test_build_command_fails(self, zircon_paths, zrc_upstream):
        builder = make_builder(
            zircon_paths, zrc_upstream, ["sh", "-c", "echo broken >&2; exit 2"]
        )

        with pytest.raises(BuildFailedError) as exc_info:
            builder.build("main")

        assert exc_info.value.exit_code == 2
        assert "broken" in str(exc_info.value)
        assert ToolchainRegistry(zircon_paths).list() == []

    def test_build_tool_missing(self, zircon_paths, zrc_upstream):
        builder = make_builder(zircon_paths, zrc_upstream, ["zircon-no-such-tool"])
        with pytest.raises(BuildFailedError, match="not found"):
            builder.build("main")

    def test_cargo_hint(self, zircon_paths, zrc_upstream):
        builder = make_builder(zircon_paths, zrc_upstream, ["cargo", "build"])
        with patch("zircon.toolchain.builder.shutil.which", return_value=None):
            with pytest.raises(BuildFailedError, match="rustup.rs"):
                builder.check_build_tool()

    def test_failing_hook_keeps_current(self, zircon_paths, zrc_upstream):
        builder = make_builder(zircon_paths, zrc_upstream)
        good = builder.build("main")

        zrc_upstream.branch("broken", checkout=True)
        sha = zrc_upstream.commit("break the hook", {"hook/install.sh": FAILING_HOOK})

        with pytest.raises(BuildFailedError, match="exit code: 3"):
            builder.build("broken")

        registry = ToolchainRegistry(zircon_paths)
        assert registry.current() == good.name
        assert [t.name for t in registry.list()] == [good.name]
        # The partial install is kept outside toolchains/ for inspection
        assert (zircon_paths.staging_dir / f"broken@{sha[:8]}" / "bin" / "zrc").exists()


class TestInterruptedInstall:
    def test_failed_force_rebuild_keeps_old_toolchain(self, zircon_paths, zrc_upstream):
        zrc_upstream.tag("v0.1.0")
        builder = make_builder(zircon_paths, zrc_upstream)
        old = builder.build("v0.1.0", activate=False)
        before = tree_snapshot(old.path)

        with patch.object(
            ToolchainBuilder,
            "run_install_hook",
            side_effect=BuildFailedError("Install hook failed", exit_code=1),
        ):
            with pytest.raises(BuildFailedError):
                builder.build("v0.1.0", force=True, activate=False)

        assert ToolchainRegistry(zircon_paths).exists("v0.1.0")
        assert tree_snapshot(old.path) == before
        assert not (zircon_paths.staging_dir / "v0.1.0.previous").exists()

    def test_ctrl_c_during_hook_leaves_nothing_installed(self, zircon_paths, zrc_upstream):
        sha = zrc_upstream.repo.head.commit.hexsha
        builder = make_builder(zircon_paths, zrc_upstream)

        def half_install(hook, source_dir, destination):
            (destination / "bin").mkdir(parents=True)
            (destination / "bin" / "zrc").write_text("partial")
            raise KeyboardInterrupt

        with patch.object(ToolchainBuilder, "run_install_hook", side_effect=half_install):
            with pytest.raises(KeyboardInterrupt):
                builder.build("main")

        registry = ToolchainRegistry(zircon_paths)
        assert registry.list() == []
        assert registry.current() is None
        assert (zircon_paths.staging_dir / f"main@{sha[:8]}" / "bin" / "zrc").exists()

        # The name is free for a retry
        assert builder.build("main").name == f"main@{sha[:8]}"

    def test_ctrl_c_during_force_rebuild_restores_old(self, zircon_paths, zrc_upstream):
        zrc_upstream.tag("v0.1.0")
        builder = make_builder(zircon_paths, zrc_upstream)
        old = builder.build("v0.1.0", activate=False)
        before = tree_snapshot(old.path)

        with patch.object(
            ToolchainBuilder, "run_install_hook", side_effect=KeyboardInterrupt
        ):
            with pytest.raises(KeyboardInterrupt):
                builder.build("v0.1.0", force=True, activate=False)

        assert tree_snapshot(old.path) == before


class TestFallbackInstall:
    def test_copies_release_outputs(self, zircon_paths, upstream):
        upstream.commit("headers", {"include/zrc.zh": "// zrc\n"})
        build = "mkdir -p target/release && printf 'bin' > target/release/zrc"
        builder = make_builder(zircon_paths, upstream, ["sh", "-c", build])

        result = builder.build("main", activate=False)

        zrc = result.path / "bin" / "zrc"
        assert zrc.read_text() == "bin"
        assert os.stat(zrc).st_mode & 0o777 == 0o755
        assert not (result.path / "bin" / "zircop").exists()
        assert (result.path / "include" / "zrc.zh").is_file()

    def test_missing_binary(self, zircon_paths, upstream):
        upstream.commit("headers", {"include/zrc.zh": "// zrc\n"})
        builder = make_builder(zircon_paths, upstream)

        with pytest.raises(BuildFailedError, match="Built binary not found"):
            builder.build("main")

        assert ToolchainRegistry(zircon_paths).list() == []

    def test_missing_include(self, zircon_paths, upstream):
        build = "mkdir -p target/release && printf 'bin' > target/release/zrc"
        builder = make_builder(zircon_paths, upstream, ["sh", "-c", build])

        with pytest.raises(BuildFailedError, match="Include directory not found"):
            builder.build("main")
