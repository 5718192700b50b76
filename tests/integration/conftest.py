"""Fixtures for integration tests."""

import shutil
import subprocess
from pathlib import Path
from typing import Protocol

import pytest


class CommitFn(Protocol):
    """Protocol for git commit function."""

    def __call__(self, message: str, files: dict[str, str] | None = None) -> str:
        """Write files, create a commit and return its SHA."""


class GitFn(Protocol):
    """Protocol for running git in the remote repository."""

    def __call__(self, *args: str) -> str:
        """Run git and return its stripped output."""


@pytest.fixture(autouse=True)
def _require_git() -> None:
    """Skip integration tests when git is not installed."""
    if shutil.which("git") is None:  # pragma: no cover
        pytest.skip("git is not installed")


@pytest.fixture
def remote_repo(tmp_path: Path) -> Path:
    """Create a git repository acting as the remote of a dependency."""
    repo = tmp_path / "remote" / "plugin.nvim"
    repo.mkdir(parents=True)
    for args in (
        ["git", "init", "--initial-branch", "main"],
        ["git", "config", "user.email", "test@example.com"],
        ["git", "config", "user.name", "Test"],
    ):
        subprocess.run(args, cwd=repo, check=True, capture_output=True)
    return repo


@pytest.fixture
def remote_git(remote_repo: Path) -> GitFn:
    """Return a function running git commands in the remote repository."""

    def _git(*args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=remote_repo,
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout.strip()

    return _git


@pytest.fixture
def remote_commit(remote_repo: Path, remote_git: GitFn) -> CommitFn:
    """Return a function to create commits in the remote repository."""

    def _commit(message: str, files: dict[str, str] | None = None) -> str:
        for name, content in (files or {}).items():
            path = remote_repo / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        remote_git("add", "-A")
        remote_git("commit", "--allow-empty", "-m", message)
        return remote_git("rev-parse", "HEAD")

    return _commit


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Create an empty plugin project directory."""
    path = tmp_path / "project"
    path.mkdir()
    return path
