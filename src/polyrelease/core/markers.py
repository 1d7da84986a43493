"""Release marker detection and history scanning.

A release marker is a commit whose subject announces a version, e.g.
``release: 1.2.3`` or ``chore(release): v1.2.3``. The most recent marker
splits history into "already released" and "since last release".
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from polyrelease.config.models import VersionConfig
    from polyrelease.vcs.git import Commit, GitRepository

logger = logging.getLogger(__name__)

# "release" as a whole word, at most three separator characters, then a semver.
# Keeps "docs: release notes for v1.2.3" and "released 1.2.3" from matching.
RELEASE_PATTERN = re.compile(
    r"\brelease\b[\s:)]{0,3}v?(?P<version>\d+\.\d+\.\d+(?:-[0-9A-Za-z.]+)?)",
    re.IGNORECASE,
)


def _subject(message: str) -> str:
    lines = message.strip().splitlines()
    return lines[0] if lines else ""


def is_release_commit(message: str) -> bool:
    """Check whether a commit message's subject is a release marker."""
    return RELEASE_PATTERN.search(_subject(message)) is not None


def extract_release_version(message: str) -> str | None:
    """Return the version announced by a release marker, without any ``v``."""
    match = RELEASE_PATTERN.search(_subject(message))
    return match.group("version") if match else None


@dataclass(frozen=True, slots=True)
class ReleaseMarker:
    sha: str
    version: str


@dataclass(frozen=True, slots=True)
class HistoryScan:
    """Result of walking history back to the last release marker.

    Attributes:
        marker: The most recent release marker, or None
        commits_since: Commits strictly newer than the marker, newest first.
            The whole scanned history when no marker was found.
    """

    marker: ReleaseMarker | None
    commits_since: list[Commit]


def _windows(config: VersionConfig) -> list[int | None]:
    windows: list[int | None] = []
    for depth in config.search_depths:
        if config.max_history is not None and depth >= config.max_history:
            break
        windows.append(depth)
    # Final window covers everything (or up to the configured cap)
    windows.append(config.max_history)
    return windows


def scan_history(repo: GitRepository, config: VersionConfig) -> HistoryScan:
    """Find the most recent release marker with a widening search window.

    Each window re-reads history from HEAD with a larger limit and only
    inspects the commits the previous window did not cover. A window that
    returns fewer commits than requested means history is exhausted.
    """
    checked = 0
    commits: list[Commit] = []

    for window in _windows(config):
        commits = repo.get_commits(max_count=window)
        logger.debug("Scanning commits %d..%d for a release marker", checked, len(commits))

        for index in range(checked, len(commits)):
            version = extract_release_version(commits[index].message)
            if version is not None:
                marker = ReleaseMarker(sha=commits[index].sha, version=version)
                logger.debug("Found release marker %s at %s", version, marker.sha[:7])
                return HistoryScan(marker=marker, commits_since=commits[:index])

        checked = len(commits)
        if window is None or len(commits) < window:
            break

    return HistoryScan(marker=None, commits_since=commits)


def detect_post_release(repo: GitRepository) -> bool:
    """Check whether HEAD is the result of merging a release.

    True when HEAD itself is a release marker (squash merge) or when HEAD
    is a merge commit with a release marker among its parents.
    """
    head = repo.get_head_commit()
    if head is None:
        return False
    if is_release_commit(head.message):
        return True

    parents = repo.get_parents("HEAD")
    if len(parents) < 2:
        return False
    return any(is_release_commit(repo.get_commit(sha).message) for sha in parents)
