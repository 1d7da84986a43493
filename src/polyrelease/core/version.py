"""Semantic version handling and current-version resolution.

The current version never comes from a manifest. It is recovered from git,
in priority order:

1. The most recent release marker commit
2. The greatest ``vX.Y.Z`` (or ``X.Y.Z``) tag by semver precedence, with a
   configurable prefix
3. ``0.0.0``
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import TYPE_CHECKING

import semver

from polyrelease.core.markers import HistoryScan, scan_history

if TYPE_CHECKING:
    from collections.abc import Iterable

    from polyrelease.config.models import VersionConfig
    from polyrelease.vcs.git import GitRepository

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "0.0.0"

_VERSION_PATTERN = r"(?P<version>\d+\.\d+\.\d+(?:-[0-9A-Za-z.]+)?)"


class BumpType(str, Enum):
    """Semantic version increment class."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    NONE = "none"

    def __str__(self) -> str:
        return self.value


def parse_version(value: str) -> semver.Version:
    """Parse a semver string, accepting a leading ``v``.

    Raises:
        ValueError: If the string is not a valid semantic version
    """
    return semver.Version.parse(value.removeprefix("v"))


def bump_version(current: str, bump: BumpType) -> str:
    """Apply a bump to ``current``.

    Prerelease versions are finalized when the bump does not need to move
    past them, so ``1.0.0-rc.1`` bumped major becomes ``1.0.0``.

    Raises:
        ValueError: If bump is NONE or current is not a valid version
    """
    version = parse_version(current)
    pre = version.prerelease is not None

    match bump:
        case BumpType.MAJOR:
            if pre and version.minor == 0 and version.patch == 0:
                return str(version.finalize_version())
            return str(version.bump_major())
        case BumpType.MINOR:
            if pre and version.patch == 0:
                return str(version.finalize_version())
            return str(version.bump_minor())
        case BumpType.PATCH:
            if pre:
                return str(version.finalize_version())
            return str(version.bump_patch())
        case _:
            raise ValueError("Cannot bump a version with BumpType.NONE")


def select_latest_tag(tags: Iterable[str], prefix: str = "v") -> str | None:
    """Pick the semantically greatest version tag.

    Tags that are not strict ``<prefix>MAJOR.MINOR.PATCH[-pre]`` (or
    unprefixed) are ignored. The returned version has no prefix.
    """
    pattern = re.compile(rf"^(?:{re.escape(prefix)})?{_VERSION_PATTERN}$")
    best: semver.Version | None = None
    for tag in tags:
        match = pattern.match(tag.strip())
        if match is None:
            continue
        try:
            candidate = semver.Version.parse(match.group("version"))
        except ValueError:
            continue
        if best is None or candidate > best:
            best = candidate
    return str(best) if best is not None else None


def resolve_current_version(
    repo: GitRepository,
    config: VersionConfig,
    *,
    scan: HistoryScan | None = None,
) -> str:
    """Determine the current released version from git history.

    Args:
        repo: Repository to inspect
        config: Version resolution settings
        scan: A previous history scan to reuse instead of walking again

    Returns:
        Version string without a ``v`` prefix
    """
    if scan is None:
        scan = scan_history(repo, config)

    if scan.marker is not None:
        logger.info(
            "Current version %s from release commit %s", scan.marker.version, scan.marker.sha[:7]
        )
        return scan.marker.version

    tagged = select_latest_tag(repo.get_tags(), config.tag_prefix)
    if tagged is not None:
        logger.info("Current version %s from git tags", tagged)
        return tagged

    logger.info("No release commit or version tag found, starting from %s", DEFAULT_VERSION)
    return DEFAULT_VERSION
