"""Shared fixtures for polyrelease tests."""

from __future__ import annotations

import subprocess
from datetime import datetime
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from polyrelease.vcs.git import Commit, GitRepository

if TYPE_CHECKING:
    from pathlib import Path


def make_commit(message: str, sha: str | None = None) -> Commit:
    return Commit(
        sha=sha or f"{abs(hash(message)):040x}"[:40],
        message=message,
        author_name="Test",
        author_email="test@test.com",
        date=datetime(2024, 1, 1),
    )


def history_repo(messages: list[str], root: Path | None = None) -> MagicMock:
    """A mock repository whose history is ``messages``, newest first."""
    commits = [make_commit(m, sha=f"{i:040d}") for i, m in enumerate(messages)]
    repo = MagicMock(spec=GitRepository)
    repo.path = root
    repo.is_shallow.return_value = False
    repo.get_tags.return_value = []
    repo.get_changed_files.return_value = []
    repo.get_commits.side_effect = lambda max_count=None: (
        commits[:max_count] if max_count is not None else list(commits)
    )
    return repo


def git(cwd: Path, *args: str) -> str:
    return subprocess.run(
        ["git", *args], cwd=cwd, check=True, capture_output=True, text=True
    ).stdout


def commit_files(cwd: Path, message: str, files: dict[str, str]) -> None:
    for name, content in files.items():
        target = cwd / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
    git(cwd, "add", "-A")
    git(cwd, "commit", "-q", "-m", message)


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """An empty git repository with an identity configured."""
    git(tmp_path, "init", "-q", "-b", "main")
    git(tmp_path, "config", "user.name", "Test")
    git(tmp_path, "config", "user.email", "test@test.com")
    git(tmp_path, "config", "commit.gpgsign", "false")
    return tmp_path
