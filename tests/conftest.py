"""Pytest fixtures for gitctx tests."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

import pytest

from gitctx.escape import EscapeMode
from gitctx.infra.command import CommandRunner
from gitctx.infra.fake import FakeCommandRunner
from gitctx.output import BufferedOutput
from gitctx.repository import RepositoryContext


def git(repo: Path, *args: str) -> str:
    """Run a git command in repo for test setup and return stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout


def commit_file(repo: Path, name: str, message: str | None = None) -> None:
    """Create a file and commit it."""
    (repo / name).write_text(f"{name}\n")
    git(repo, "add", "-A")
    git(repo, "commit", "-m", message or name)


def configure_user(repo: Path) -> None:
    git(repo, "config", "user.email", "test@test.com")
    git(repo, "config", "user.name", "Test User")
    git(repo, "config", "commit.gpgsign", "false")
    git(repo, "config", "tag.gpgsign", "false")


@pytest.fixture
def output() -> BufferedOutput:
    """Create an output that records every message."""
    return BufferedOutput()


@pytest.fixture
def escape_mode() -> EscapeMode:
    """A fresh escape cell so tests never share the process-wide decision."""
    return EscapeMode()


@pytest.fixture
def fake_runner(output: BufferedOutput) -> FakeCommandRunner:
    return FakeCommandRunner(output=output)


@pytest.fixture
def isolated_runner(tmp_path: Path, output: BufferedOutput) -> CommandRunner:
    """A real runner that cannot see repositories above tmp_path."""
    return CommandRunner(
        output,
        terminate=lambda code: None,
        env={"GIT_CEILING_DIRECTORIES": str(tmp_path)},
    )


@pytest.fixture
def bare_remote(tmp_path: Path) -> Path:
    """Create an empty bare repository to act as origin."""
    bare = tmp_path / "bare.git"
    bare.mkdir()
    git(bare, "init", "--bare")
    git(bare, "symbolic-ref", "HEAD", "refs/heads/master")
    return bare


@pytest.fixture
def mock_repo(tmp_path: Path, bare_remote: Path) -> Path:
    """Create a clone of bare_remote with one commit pushed to master.

    Creates a working copy with:
    - origin pointing at bare_remote
    - a committed file named "init"
    - master tracking origin/master
    """
    work = tmp_path / "work"
    subprocess.run(
        ["git", "clone", str(bare_remote), str(work)],
        check=True,
        capture_output=True,
    )
    configure_user(work)
    git(work, "symbolic-ref", "HEAD", "refs/heads/master")
    commit_file(work, "init")
    git(work, "push", "-u", "origin", "master")
    return work


@pytest.fixture
def repo_ctx(output: BufferedOutput, escape_mode: EscapeMode) -> RepositoryContext:
    """A context over the real git binary with no behavior flags."""
    return RepositoryContext(output, escape_mode=escape_mode)


@pytest.fixture
def run_git():
    """The git() setup helper, for tests that shape a repository."""
    return git


@pytest.fixture
def commit():
    """The commit_file() setup helper."""
    return commit_file
