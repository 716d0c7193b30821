"""
Unit tests for the LLVM/clang dependency probe.
"""

import logging
import subprocess
from unittest.mock import patch

import pytest

from zircon.core.dependencies import check_clang, check_llvm, warn_dependencies


def _completed(stdout="", returncode=0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr="")


def _fake_run(versions):
    """subprocess.run replacement answering from a {command: stdout} map."""

    def run(cmd, **kwargs):
        if cmd[0] not in versions:
            raise FileNotFoundError(cmd[0])
        return _completed(versions[cmd[0]])

    return run


@pytest.mark.unit
class TestCheckLLVM:
    def test_found_on_path(self):
        with patch("subprocess.run", side_effect=_fake_run({"llvm-config": "20.1.2\n"})):
            status = check_llvm()
        assert status.found
        assert status.version == "20.1.2"
        assert status.location == "llvm-config"

    def test_wrong_version_keeps_looking(self, caplog):
        versions = {"llvm-config": "18.1.0", "llvm-config-20": "20.1.0"}
        with caplog.at_level(logging.WARNING), patch(
            "subprocess.run", side_effect=_fake_run(versions)
        ):
            status = check_llvm()

        assert status.location == "llvm-config-20"
        assert "requires LLVM 20.x" in caplog.text

    def test_not_found(self):
        with patch("subprocess.run", side_effect=_fake_run({})):
            status = check_llvm()
        assert not status.found
        assert "brew install llvm@20" in status.message

    def test_nonzero_exit_ignored(self):
        with patch("subprocess.run", return_value=_completed("20.1.0", returncode=1)):
            assert not check_llvm().found


@pytest.mark.unit
class TestCheckClang:
    def test_first_line_reported(self):
        output = "clang version 20.1.0\nTarget: x86_64-pc-linux-gnu\n"
        with patch("subprocess.run", side_effect=_fake_run({"clang": output})):
            status = check_clang()
        assert status.version == "clang version 20.1.0"

    def test_timeout(self):
        with patch(
            "subprocess.run", side_effect=subprocess.TimeoutExpired("clang", 5)
        ):
            assert not check_clang().found


@pytest.mark.unit
class TestWarnDependencies:
    def test_reports_missing(self, caplog):
        with caplog.at_level(logging.INFO), patch(
            "subprocess.run", side_effect=_fake_run({})
        ):
            warn_dependencies()

        assert "✗ LLVM 20 not found" in caplog.text
        assert "clang not found" in caplog.text

    def test_never_raises(self):
        with patch(
            "zircon.core.dependencies.check_llvm", side_effect=RuntimeError("boom")
        ):
            warn_dependencies()
