"""Throw-away git repositories standing in for the upstream zrc project.

Tests clone these over the local filesystem, so no network is needed.
"""

import shutil
from pathlib import Path
from typing import Dict, Optional

import pytest
from git import Actor, Repo

ACTOR = Actor("Zircon Tests", "tests@example.com")


class UpstreamRepo:
    """A working repository that tests commit, branch and tag in."""

    def __init__(self, path: Path):
        self.path = path
        self.repo = Repo.init(path)
        self.repo.git.symbolic_ref("HEAD", "refs/heads/main")

    @property
    def url(self) -> str:
        return str(self.path)

    def commit(self, message: str, files: Optional[Dict[str, str]] = None) -> str:
        """Commit files (default: a changelog line) on the current branch."""
        files = files or {"CHANGELOG": f"{message}\n"}
        for name, content in files.items():
            target = self.path / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
            self.repo.index.add([name])
        commit = self.repo.index.commit(message, author=ACTOR, committer=ACTOR)
        return commit.hexsha

    def branch(self, name: str, checkout: bool = False) -> None:
        self.repo.git.branch(name)
        if checkout:
            self.repo.git.checkout(name)

    def checkout(self, name: str) -> None:
        self.repo.git.checkout(name)

    def tag(self, name: str, ref: str = "HEAD") -> None:
        self.repo.git.tag(name, ref)


@pytest.fixture
def upstream(tmp_path) -> UpstreamRepo:
    """
    Upstream repository with one commit on main.

    Example:
        def test_fetch(upstream):
            upstream.commit("second")
    """
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    repo = UpstreamRepo(tmp_path / "upstream")
    repo.commit("initial")
    return repo
