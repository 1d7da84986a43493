"""Read-only git access via the git command line.

Only the queries the release pipeline needs are implemented here. Branch
creation, committing and pushing are left to the caller's own tooling.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from polyrelease.exceptions import GitError

logger = logging.getLogger(__name__)

# Unit and record separators keep multi-line bodies intact
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = f"%H{_FIELD_SEP}%an{_FIELD_SEP}%ae{_FIELD_SEP}%aI{_FIELD_SEP}%B{_RECORD_SEP}"


@dataclass(frozen=True, slots=True)
class Commit:
    """A single commit as reported by git."""

    sha: str
    message: str
    author_name: str
    author_email: str
    date: datetime

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def first_line(self) -> str:
        lines = self.message.strip().splitlines()
        return lines[0].strip() if lines else ""


class GitRepository:
    """Thin wrapper around a git working tree."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path).resolve()
        if not (self.path / ".git").exists():
            # Worktrees and submodules use a .git file; ask git directly
            try:
                self._run("rev-parse", "--git-dir")
            except GitError as e:
                raise GitError(f"Not a git repository: {self.path}") from e

    def _run(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.path,
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found on PATH") from e
        except subprocess.CalledProcessError as e:
            raise GitError(
                f"git {' '.join(args)} failed with exit code {e.returncode}",
                stderr=e.stderr,
            ) from e
        return result.stdout

    def is_shallow(self) -> bool:
        """Return True if the checkout is a shallow clone."""
        return self._run("rev-parse", "--is-shallow-repository").strip() == "true"

    def has_commits(self) -> bool:
        try:
            self._run("rev-parse", "--verify", "HEAD")
        except GitError:
            return False
        return True

    def get_commits(self, max_count: int | None = None) -> list[Commit]:
        """List commits reachable from HEAD, newest first.

        Args:
            max_count: Limit on the number of commits, None for all
        """
        if not self.has_commits():
            return []

        args = ["log", f"--format={_LOG_FORMAT}"]
        if max_count is not None:
            args.append(f"--max-count={max_count}")
        return _parse_log(self._run(*args))

    def get_commit(self, ref: str) -> Commit:
        output = self._run("log", "-1", f"--format={_LOG_FORMAT}", ref)
        commits = _parse_log(output)
        if not commits:
            raise GitError(f"Unknown revision: {ref}")
        return commits[0]

    def get_head_commit(self) -> Commit | None:
        if not self.has_commits():
            return None
        return self.get_commit("HEAD")

    def get_parents(self, ref: str = "HEAD") -> list[str]:
        """Return the parent SHAs of ``ref``."""
        fields = self._run("rev-list", "--parents", "-n", "1", ref).split()
        return fields[1:]

    def get_tags(self) -> list[str]:
        return [t for t in self._run("tag", "--list").splitlines() if t.strip()]

    def get_changed_files(self, sha: str) -> list[str]:
        """Paths touched by ``sha``, relative to the repository root."""
        output = self._run("show", "--name-only", "--format=", "--no-renames", sha)
        return [line.strip() for line in output.splitlines() if line.strip()]

    def is_dirty(self) -> bool:
        return bool(self._run("status", "--porcelain").strip())


def _parse_log(output: str) -> list[Commit]:
    commits: list[Commit] = []
    for record in output.split(_RECORD_SEP):
        record = record.strip("\n")
        if not record:
            continue
        sha, author_name, author_email, date, message = record.split(_FIELD_SEP, 4)
        commits.append(
            Commit(
                sha=sha.strip(),
                message=message.strip(),
                author_name=author_name,
                author_email=author_email,
                date=datetime.fromisoformat(date),
            )
        )
    return commits
