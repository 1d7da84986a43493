"""Conventional commit classification and package attribution.

Implements parsing of commit messages following the Conventional Commits
specification (https://www.conventionalcommits.org/):

    <type>[optional scope][!]: <description>

    [optional body]

    [optional footer(s)]

Messages that do not follow the format are kept with ``commit_type=None``
and displayed through their first line. They never trigger a bump on
their own.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from polyrelease.core.markers import HistoryScan, scan_history
from polyrelease.core.version import BumpType
from polyrelease.exceptions import ShallowHistoryError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from polyrelease.config.models import PolyReleaseConfig
    from polyrelease.ecosystems.base import Package
    from polyrelease.vcs.git import GitRepository

logger = logging.getLogger(__name__)

DEFAULT_BREAKING_PATTERN = r"^BREAKING[ -]CHANGE:"

CONVENTIONAL_PATTERN = re.compile(
    r"^(?P<type>[A-Za-z][\w-]*)"
    r"(?:\((?P<scope>[^()]*)\))?"
    r"(?P<breaking>!)?"
    r":\s+(?P<description>\S.*)$"
)


@dataclass(frozen=True, slots=True)
class ClassifiedCommit:
    """A commit parsed against the conventional grammar.

    Attributes:
        sha: Full commit hash
        commit_type: Lower-cased type (feat, fix, ...), None if unparseable
        scope: Optional scope from ``type(scope):``
        subject: Description after the colon, None if unparseable
        body: Text after the first line, None if empty
        is_breaking: ``!`` marker or BREAKING CHANGE footer present
        affected_packages: Names of packages whose files the commit touched
        changed_files: Repository-relative paths touched by the commit
        raw_first_line: First line of the message, always present
    """

    sha: str
    commit_type: str | None
    scope: str | None
    subject: str | None
    body: str | None
    is_breaking: bool
    raw_first_line: str
    affected_packages: frozenset[str] = field(default_factory=frozenset)
    changed_files: tuple[str, ...] = ()

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def is_conventional(self) -> bool:
        return self.commit_type is not None

    @property
    def display_text(self) -> str:
        """Subject when parsed, otherwise the raw first line."""
        return self.subject if self.subject is not None else self.raw_first_line


def classify_message(
    sha: str,
    message: str,
    breaking_pattern: str = DEFAULT_BREAKING_PATTERN,
) -> ClassifiedCommit:
    """Parse a commit message into a ClassifiedCommit without attribution."""
    message = message.strip()
    first_line, _, rest = message.partition("\n")
    first_line = first_line.strip()
    body = rest.strip() or None

    has_footer = re.search(breaking_pattern, message, re.MULTILINE) is not None

    match = CONVENTIONAL_PATTERN.match(first_line)
    if match is None:
        return ClassifiedCommit(
            sha=sha,
            commit_type=None,
            scope=None,
            subject=None,
            body=body,
            is_breaking=has_footer,
            raw_first_line=first_line,
        )

    scope = match.group("scope")
    return ClassifiedCommit(
        sha=sha,
        commit_type=match.group("type").lower(),
        scope=scope.strip() if scope else None,
        subject=match.group("description").strip(),
        body=body,
        is_breaking=match.group("breaking") is not None or has_footer,
        raw_first_line=first_line,
    )


def path_prefix(path: Path, root: Path) -> str:
    """Root-relative POSIX form of ``path``; the root itself is ``""``."""
    prefix = PurePosixPath(Path(path).resolve().relative_to(root.resolve())).as_posix()
    return "" if prefix == "." else prefix


def owns_file(prefix: str, file: str) -> bool:
    """Whether a package at ``prefix`` owns the repository-relative ``file``.

    A package rooted at the repository root owns every file. Other packages
    own files equal to or below their directory, compared on whole path
    components so ``packages/a`` does not claim ``packages/ab/x``.
    """
    return prefix == "" or file == prefix or file.startswith(prefix + "/")


def package_prefixes(packages: Iterable[Package], root: Path) -> list[tuple[str, str]]:
    """Map packages to (name, root-relative POSIX path) pairs."""
    return [(pkg.name, path_prefix(pkg.path, root)) for pkg in packages]


def attribute_files(files: Iterable[str], prefixes: Sequence[tuple[str, str]]) -> frozenset[str]:
    """Return names of packages owning any of ``files``."""
    files = list(files)
    return frozenset(name for name, prefix in prefixes if any(owns_file(prefix, f) for f in files))


def ensure_full_history(repo: GitRepository) -> None:
    """Raise ShallowHistoryError unless the checkout has full history."""
    if repo.is_shallow():
        raise ShallowHistoryError(str(repo.path))


def analyze_commits(
    repo: GitRepository,
    packages: Sequence[Package],
    config: PolyReleaseConfig,
    *,
    root: Path | None = None,
    scan: HistoryScan | None = None,
) -> list[ClassifiedCommit]:
    """Classify and attribute every commit since the last release marker.

    Args:
        repo: Repository to analyze
        packages: Discovered packages used for attribution
        config: Configuration (breaking pattern, history search)
        root: Repository root for package paths, defaults to repo.path
        scan: A previous history scan to reuse

    Returns:
        Classified commits, oldest first

    Raises:
        ShallowHistoryError: If the checkout is shallow
    """
    ensure_full_history(repo)
    if scan is None:
        scan = scan_history(repo, config.version)

    prefixes = package_prefixes(packages, root if root is not None else repo.path)
    classified: list[ClassifiedCommit] = []

    for commit in reversed(scan.commits_since):
        parsed = classify_message(commit.sha, commit.message, config.commits.breaking_pattern)
        files = repo.get_changed_files(commit.sha)
        classified.append(_with_attribution(parsed, files, prefixes))

    logger.info("Analyzed %d commit(s) since last release", len(classified))
    return classified


def _with_attribution(
    parsed: ClassifiedCommit,
    files: list[str],
    prefixes: Sequence[tuple[str, str]],
) -> ClassifiedCommit:
    return ClassifiedCommit(
        sha=parsed.sha,
        commit_type=parsed.commit_type,
        scope=parsed.scope,
        subject=parsed.subject,
        body=parsed.body,
        is_breaking=parsed.is_breaking,
        raw_first_line=parsed.raw_first_line,
        affected_packages=attribute_files(files, prefixes),
        changed_files=tuple(files),
    )


def calculate_bump(
    commits: Sequence[ClassifiedCommit],
    types_minor: Iterable[str] = ("feat",),
    types_patch: Iterable[str] = ("fix", "perf"),
) -> BumpType:
    """Determine the bump implied by a set of commits.

    Priority is strict: any breaking change wins, then minor types, then
    patch types. Unparseable commits neither trigger nor suppress a bump.
    """
    if any(c.is_breaking for c in commits):
        return BumpType.MAJOR

    present = {c.commit_type for c in commits if c.commit_type is not None}
    if present & set(types_minor):
        return BumpType.MINOR
    if present & set(types_patch):
        return BumpType.PATCH
    return BumpType.NONE


def group_commits_by_type(commits: Iterable[ClassifiedCommit]) -> dict[str, list[ClassifiedCommit]]:
    """Group commits by type; unparseable commits go under ``other``."""
    grouped: dict[str, list[ClassifiedCommit]] = defaultdict(list)
    for commit in commits:
        grouped[commit.commit_type or "other"].append(commit)
    return dict(grouped)


def commits_touching(commits: Iterable[ClassifiedCommit], prefix: str) -> list[ClassifiedCommit]:
    """Commits that changed at least one file owned by the package at ``prefix``."""
    return [c for c in commits if any(owns_file(prefix, f) for f in c.changed_files)]


def get_breaking_changes(commits: Iterable[ClassifiedCommit]) -> list[ClassifiedCommit]:
    return [c for c in commits if c.is_breaking]
