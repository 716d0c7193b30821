"""
Tests for installing release archives (HTTP mocked with responses).
"""

import sys

import pytest
import responses

from zircon.core.config import ZirconConfig
from zircon.core.exceptions import (
    ArchiveError,
    NetworkFailureError,
    ToolchainAlreadyExistsError,
    UnsupportedPlatformError,
)
from zircon.core.platform import PlatformInfo
from zircon.toolchain.installer import ReleaseInstaller
from zircon.toolchain.registry import ToolchainRegistry

pytestmark = pytest.mark.skipif(
    sys.platform == "win32", reason="exercises the POSIX symlink backend"
)

LINUX = PlatformInfo("linux", "x64")
NIGHTLY_URL = (
    "https://github.com/zirco-lang/zrc/releases/download/nightly/zrc-linux-x64.tar.gz"
)


@pytest.fixture
def installer(zircon_paths):
    return ReleaseInstaller(zircon_paths, platform=LINUX)


class TestReleaseUrl:
    def test_default(self, installer):
        assert installer.release_url("nightly") == NIGHTLY_URL

    def test_configured_mirror(self, zircon_paths):
        config = ZirconConfig(release_url="https://mirror.example.com/zrc")
        installer = ReleaseInstaller(
            zircon_paths, config=config, platform=PlatformInfo("macos", "arm64")
        )
        assert (
            installer.release_url("v0.1.0")
            == "https://mirror.example.com/zrc/v0.1.0/zrc-macos-arm64.tar.gz"
        )

    def test_unsupported_platform(self, zircon_paths):
        installer = ReleaseInstaller(zircon_paths, platform=PlatformInfo("windows", "x64"))
        with pytest.raises(UnsupportedPlatformError):
            installer.install("nightly")


class TestInstall:
    @responses.activate
    def test_install_nightly(self, installer, zircon_paths, release_archive):
        responses.add(responses.GET, NIGHTLY_URL, body=release_archive.read_bytes())

        result = installer.install()

        assert result.name == "nightly"
        assert (zircon_paths.toolchain_dir("nightly") / "bin" / "zrc").is_file()
        assert not result.is_current
        assert list(zircon_paths.downloads_dir.iterdir()) == []

    @responses.activate
    def test_install_and_switch(self, installer, zircon_paths, release_archive):
        responses.add(responses.GET, NIGHTLY_URL, body=release_archive.read_bytes())

        installer.install("nightly", activate=True)

        assert ToolchainRegistry(zircon_paths).current() == "nightly"

    @responses.activate
    def test_existing_skips_download(self, installer, install_toolchain):
        install_toolchain("nightly")

        with pytest.raises(ToolchainAlreadyExistsError):
            installer.install("nightly")

        assert len(responses.calls) == 0

    @responses.activate
    def test_missing_release(self, installer, zircon_paths):
        url = NIGHTLY_URL.replace("nightly", "v9.9.9")
        responses.add(responses.GET, url, status=404)

        with pytest.raises(NetworkFailureError, match="404"):
            installer.install("v9.9.9")

        assert not zircon_paths.toolchain_dir("v9.9.9").exists()
        assert list(zircon_paths.downloads_dir.iterdir()) == []

    @responses.activate
    def test_bad_archive_cleaned_up(self, installer, zircon_paths):
        responses.add(responses.GET, NIGHTLY_URL, body=b"not an archive")

        with pytest.raises(ArchiveError):
            installer.install("nightly")

        assert not zircon_paths.toolchain_dir("nightly").exists()
        assert list(zircon_paths.downloads_dir.iterdir()) == []
