"""
Build toolchains from source.

The pipeline synchronizes the zrc mirror, checks out the requested
reference, names the toolchain after it, runs the build, installs the
build outputs into ``toolchains/<name>`` and finally activates it.

Installation prefers the repository's own ``hook/install.sh``, run with
bash from the mirror directory and ``TOOLCHAIN_DIR`` pointing at the
destination. Older revisions without a hook get the build outputs copied
directly (``target/release/<binary>`` and ``include/``).
"""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..core.config import ZirconConfig
from ..core.dependencies import warn_dependencies
from ..core.directory import ZirconPaths, executable_name, validate_toolchain_name
from ..core.exceptions import (
    BuildFailedError,
    CannotDeleteActiveError,
    ToolchainAlreadyExistsError,
    ZirconError,
)
from ..core.filesystem import copy_tree, make_executable, safe_rmtree
from ..core.locking import LockManager
from ..source.references import ToolchainRef, derive_toolchain_name
from ..source.repository import (
    checkout_ref,
    clone_or_open,
    current_commit,
    fetch,
)
from .linking import ToolchainLinkManager
from .registry import ToolchainRegistry
from .verifier import validate_toolchain_structure

logger = logging.getLogger(__name__)

INSTALL_HOOK = Path("hook") / "install.sh"
RELEASE_DIR = Path("target") / "release"


@dataclass
class BuildResult:
    """A toolchain produced by a build."""

    name: str
    path: Path
    reference: ToolchainRef
    commit: str
    is_current: bool = False


class ToolchainBuilder:
    """
    Builds and installs toolchains from the zrc repository.

    Example:
        >>> builder = ToolchainBuilder(paths, config)
        >>> result = builder.build("main")
        >>> result.name
        'main@1a2b3c4d'
    """

    def __init__(
        self,
        paths: ZirconPaths,
        config: Optional[ZirconConfig] = None,
        lock_manager: Optional[LockManager] = None,
        link_manager: Optional[ToolchainLinkManager] = None,
    ):
        self.paths = paths
        self.config = config or ZirconConfig()
        self.lock_manager = lock_manager or LockManager(
            paths.lock_dir, timeout=self.config.lock_timeout
        )
        self.link_manager = link_manager or ToolchainLinkManager(paths)
        self.registry = ToolchainRegistry(paths)

    def build(
        self,
        reference: str,
        repo_url: Optional[str] = None,
        force: bool = False,
        activate: bool = True,
    ) -> BuildResult:
        """
        Build a branch, tag or commit and install it as a toolchain.

        Args:
            reference: Branch, tag or commit to build
            repo_url: Repository to clone (default: configured toolchain_repo)
            force: Rebuild a toolchain that is already installed
            activate: Switch to the toolchain once installed

        Returns:
            BuildResult for the installed toolchain

        Raises:
            NetworkFailureError: If the mirror can't be cloned or fetched
            ReferenceNotFoundError: If the reference doesn't exist
            ToolchainAlreadyExistsError: If the toolchain exists and force is False
            CannotDeleteActiveError: If force would rebuild the active toolchain
            BuildFailedError: If the build or install hook fails
            InvalidToolchainStructureError: If the install produced no bin/zrc
        """
        self.paths.ensure_directories()
        warn_dependencies()

        source_dir = self.paths.zrc_source_dir
        repo = clone_or_open(repo_url or self.config.toolchain_repo, source_dir)
        fetch(repo)
        checkout_ref(repo, reference)

        ref, name = derive_toolchain_name(repo, reference)
        validate_toolchain_name(name)
        commit = current_commit(repo)
        logger.info(f"Building version: {name}")

        # Fail before a long build if the result can't be installed
        self._check_conflict(name, force)

        self.check_build_tool()
        self.run_build(source_dir)

        with self.lock_manager.root_lock():
            replace = self._check_conflict(name, force)
            destination = self.install(source_dir, name, replace)

            is_current = False
            if activate:
                self.link_manager.activate(name, self.config.binaries)
                is_current = True

        logger.info(f"✓ Successfully built and installed zrc {name}")
        logger.info(f"  Toolchain location: {destination}")
        return BuildResult(
            name=name, path=destination, reference=ref, commit=commit, is_current=is_current
        )

    def _check_conflict(self, name: str, force: bool) -> bool:
        if not self.registry.exists(name):
            return False
        if not force:
            raise ToolchainAlreadyExistsError(name)
        if self.registry.current() == name:
            raise CannotDeleteActiveError(name)
        return True

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def check_build_tool(self) -> None:
        """
        Make sure the build command's executable is on PATH.

        Raises:
            BuildFailedError: If it isn't
        """
        tool = self.config.build_command[0]
        if shutil.which(tool) is None:
            hint = " Please install Rust from https://rustup.rs/" if tool == "cargo" else ""
            raise BuildFailedError(f"{tool} not found.{hint}")
        logger.debug(f"Found build tool: {tool}")

    def run_build(self, source_dir: Path) -> None:
        """
        Run the configured build command in the mirror.

        Raises:
            BuildFailedError: If the command can't be started or exits non-zero
        """
        command = self.config.build_command
        logger.info("Building zrc (this may take several minutes)...")
        logger.debug(f"Running: {' '.join(command)} (cwd={source_dir})")

        try:
            result = subprocess.run(
                command,
                cwd=source_dir,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise BuildFailedError(f"Failed to run {command[0]}: {e}") from e

        if result.returncode != 0:
            sections = []
            if result.stderr:
                sections.append(f"Stderr:\n{result.stderr}")
            if result.stdout:
                sections.append(f"Stdout:\n{result.stdout}")
            raise BuildFailedError(
                "Failed to build zrc",
                exit_code=result.returncode,
                output="\n\n".join(sections),
            )

        logger.info("Build complete!")

    # ------------------------------------------------------------------
    # Install
    # ------------------------------------------------------------------

    def install(self, source_dir: Path, name: str, replace: bool = False) -> Path:
        """
        Install build outputs into toolchains/<name>.

        When replacing, the existing toolchain is moved to staging first and
        only deleted once the new one validates. Any failed or interrupted
        install is moved to staging/<name> for inspection and the previous
        toolchain, if any, is put back.

        Returns:
            The toolchain directory
        """
        destination = self.paths.toolchain_dir(name)
        previous = None
        if replace:
            logger.info(f"Replacing existing toolchain: {name}")
            previous = self._move_previous(destination, name)

        installed = False
        try:
            destination.mkdir(parents=True)
            hook = source_dir / INSTALL_HOOK
            if hook.is_file():
                self.run_install_hook(hook, source_dir, destination)
            else:
                logger.info("No install hook found, using fallback installation...")
                self.install_fallback(source_dir, destination)

            validate_toolchain_structure(destination, self.config.primary_binary)
            installed = True
        finally:
            if not installed:
                self._set_aside(destination, name)
                if previous is not None:
                    self._restore_previous(previous, destination)

        if previous is not None:
            try:
                safe_rmtree(previous, require_prefix=self.paths.staging_dir)
            except (ZirconError, OSError) as e:
                logger.warning(f"Could not remove replaced toolchain {previous}: {e}")

        return destination

    def _move_previous(self, destination: Path, name: str) -> Path:
        """Move the toolchain being replaced to staging/<name>.previous."""
        previous = self.paths.staging_dir / f"{name}.previous"
        if previous.exists():
            safe_rmtree(previous, require_prefix=self.paths.staging_dir)
        previous.parent.mkdir(parents=True, exist_ok=True)
        os.replace(destination, previous)
        return previous

    def _restore_previous(self, previous: Path, destination: Path) -> None:
        try:
            os.replace(previous, destination)
        except OSError as e:
            logger.error(f"Could not restore previous toolchain from {previous}: {e}")
            return
        logger.info(f"Restored previous toolchain: {destination.name}")

    def _set_aside(self, destination: Path, name: str) -> None:
        """Move a partial install out of toolchains/ into staging/<name>."""
        if not destination.exists():
            return
        staging = self.paths.staging_dir / name
        try:
            if staging.exists():
                safe_rmtree(staging, require_prefix=self.paths.staging_dir)
            os.replace(destination, staging)
        except (ZirconError, OSError) as e:
            logger.warning(f"Could not move partial toolchain {destination} aside: {e}")
            return
        logger.warning(f"Partial toolchain left for inspection: {staging}")

    def run_install_hook(self, hook: Path, source_dir: Path, destination: Path) -> None:
        """
        Run hook/install.sh with TOOLCHAIN_DIR set to the destination.

        Raises:
            BuildFailedError: If bash is missing or the hook exits non-zero
        """
        logger.info("Running install hook...")
        env = os.environ.copy()
        env["TOOLCHAIN_DIR"] = str(destination)

        try:
            result = subprocess.run(
                ["bash", str(hook)], cwd=source_dir, env=env, check=False
            )
        except OSError as e:
            raise BuildFailedError(f"Failed to run install hook: {e}") from e

        if result.returncode != 0:
            raise BuildFailedError("Install hook failed", exit_code=result.returncode)

    def install_fallback(self, source_dir: Path, destination: Path) -> None:
        """
        Copy build outputs for revisions without an install hook.

        The primary binary and include/ are required; other configured
        binaries are copied when the build produced them.
        """
        release_dir = source_dir / RELEASE_DIR
        bin_dir = destination / "bin"
        bin_dir.mkdir(parents=True, exist_ok=True)

        for binary in self.config.binaries:
            filename = executable_name(binary)
            source = release_dir / filename
            if not source.is_file():
                if binary == self.config.primary_binary:
                    raise BuildFailedError(f"Built binary not found at {source}")
                logger.debug(f"{filename} not built, skipping")
                continue

            logger.info(f"Installing {binary} binary to {bin_dir / filename}")
            shutil.copy2(source, bin_dir / filename)
            make_executable(bin_dir / filename)

        include_source = source_dir / "include"
        if not include_source.is_dir():
            raise BuildFailedError(f"Include directory not found at {include_source}")

        include_dir = destination / "include"
        logger.info(f"Installing include files to {include_dir}")
        copy_tree(include_source, include_dir)


__all__ = [
    "BuildResult",
    "ToolchainBuilder",
]
