"""Per-package changelog generation.

Each package directory with at least one attributed commit gets a new
version section prepended to its CHANGELOG.md, directly under a single
top-level heading. Text of earlier sections is kept byte for byte.
"""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from polyrelease.core.commits import (
    commits_touching,
    get_breaking_changes,
    group_commits_by_type,
    path_prefix,
)
from polyrelease.exceptions import ChangelogError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from polyrelease.config.models import ChangelogConfig
    from polyrelease.core.commits import ClassifiedCommit
    from polyrelease.ecosystems.base import Package

logger = logging.getLogger(__name__)

BREAKING_TITLE = "Breaking Changes"
OTHER_TITLE = "Other"

# Rendered in this order after breaking changes
SECTION_TITLES: dict[str, str] = {
    "feat": "Features",
    "fix": "Bug Fixes",
    "perf": "Performance Improvements",
    "test": "Tests",
    "docs": "Documentation",
    "refactor": "Refactoring",
    "chore": "Chores",
    "style": "Styles",
    "build": "Build System",
    "ci": "Continuous Integration",
}


def format_commit_line(commit: ClassifiedCommit) -> str:
    """Format a single changelog bullet."""
    if commit.subject is not None and commit.scope:
        return f"- **{commit.scope}:** {commit.subject}"
    return f"- {commit.display_text}"


def render_changelog_section(
    version: str,
    commits: Sequence[ClassifiedCommit],
    today: date | None = None,
) -> str:
    """Render the markdown section for one version.

    Breaking commits are listed only under Breaking Changes. Commits with
    an unknown or missing type land in Other.

    Returns:
        Section text ending with a blank line, or "" without commits
    """
    if not commits:
        return ""

    day = today or datetime.now(UTC).date()
    by_type = group_commits_by_type(c for c in commits if not c.is_breaking)
    buckets: dict[str, list[ClassifiedCommit]] = {BREAKING_TITLE: get_breaking_changes(commits)}
    for commit_type, title in SECTION_TITLES.items():
        buckets[title] = by_type.get(commit_type, [])
    buckets[OTHER_TITLE] = [
        c for c in commits if not c.is_breaking and c.commit_type not in SECTION_TITLES
    ]

    lines = [f"## {version} ({day.isoformat()})", ""]
    for title, entries in buckets.items():
        if not entries:
            continue
        lines.append(f"### {title}")
        lines.append("")
        lines.extend(format_commit_line(c) for c in entries)
        lines.append("")

    return "\n".join(lines) + "\n"


def merge_changelog(existing: str, section: str, heading: str = "# Changelog") -> str:
    """Prepend ``section`` to existing changelog text.

    An existing top-level heading is kept as written and the section goes
    directly below it. ``heading`` is only used when there is none.
    """
    body = existing
    first_line, newline, rest = existing.partition("\n")
    if first_line.startswith("# "):
        heading = first_line.rstrip()
        body = rest.lstrip("\n") if newline else ""
    return f"{heading}\n\n{section}{body}"


def extract_latest_section(text: str) -> str:
    """Return the body of the newest ``## `` section, without its heading."""
    lines = text.splitlines()
    start: int | None = None
    for index, line in enumerate(lines):
        if line.startswith("## "):
            if start is not None:
                return "\n".join(lines[start:index]).strip()
            start = index + 1
    if start is None:
        return ""
    return "\n".join(lines[start:]).strip()


def _commits_by_directory(
    commits: Sequence[ClassifiedCommit],
    packages: Iterable[Package],
    root: Path,
) -> dict[Path, list[ClassifiedCommit]]:
    # Packages from different ecosystems can share a directory (and CHANGELOG.md)
    grouped: dict[Path, list[ClassifiedCommit]] = {}
    for directory in dict.fromkeys(Path(pkg.path) for pkg in packages):
        matched = commits_touching(commits, path_prefix(directory, root))
        if matched:
            grouped[directory] = matched
    return grouped


def generate_changelogs(
    version: str,
    commits: Sequence[ClassifiedCommit],
    packages: Sequence[Package],
    config: ChangelogConfig,
    today: date | None = None,
    *,
    root: Path,
) -> list[Path]:
    """Write changelog entries for every package with attributed commits.

    A commit is attributed to a package directory when it changed a file
    inside it. Packages without commits are left untouched (no file is
    created).

    Returns:
        Paths of the changelog files written

    Raises:
        ChangelogError: If a changelog file cannot be read or written
    """
    written: list[Path] = []
    for directory, package_commits in _commits_by_directory(commits, packages, root).items():
        path = directory / config.filename
        section = render_changelog_section(version, package_commits, today)
        try:
            existing = path.read_text(encoding="utf-8") if path.exists() else ""
            path.write_text(merge_changelog(existing, section, config.heading), encoding="utf-8")
        except OSError as e:
            raise ChangelogError(f"Could not update {path}: {e}") from e
        logger.info("Updated %s with %d commit(s)", path, len(package_commits))
        written.append(path)
    return written
