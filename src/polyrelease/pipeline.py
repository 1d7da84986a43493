"""Release pipeline: plan, apply and publish.

``plan_release`` is read-only. Every error it can raise (shallow history,
unreadable manifests, unparseable versions) surfaces before
``apply_release`` touches the working tree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from polyrelease.core.changelog import generate_changelogs
from polyrelease.core.commits import analyze_commits, calculate_bump, ensure_full_history
from polyrelease.core.description import render_release_description
from polyrelease.core.markers import scan_history
from polyrelease.core.version import BumpType, bump_version, resolve_current_version
from polyrelease.ecosystems.discovery import discover_all_packages, write_all_versions
from polyrelease.publish.orchestrator import publish_all_packages

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from polyrelease.config.models import PolyReleaseConfig
    from polyrelease.core.commits import ClassifiedCommit
    from polyrelease.ecosystems.base import EcosystemAdapter, Package
    from polyrelease.publish.orchestrator import PublishSummary
    from polyrelease.vcs import GitRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReleasePlan:
    """Everything needed to apply a release, computed without side effects.

    Attributes:
        root: Repository root
        current_version: Version of the last release
        bump: Bump implied by the commits
        next_version: Version to release, None when there is nothing to release
        commits: Commits since the last release, oldest first
        packages: Packages across all detected ecosystems
        adapters: Adapters whose manifests were detected
    """

    root: Path
    current_version: str
    bump: BumpType
    next_version: str | None
    commits: list[ClassifiedCommit] = field(default_factory=list)
    packages: list[Package] = field(default_factory=list)
    adapters: list[EcosystemAdapter] = field(default_factory=list)

    @property
    def has_release(self) -> bool:
        return self.next_version is not None

    def describe(self, config: PolyReleaseConfig) -> str:
        """Release PR body for the commits in this plan."""
        return render_release_description(self.commits, config.description)


def plan_release(
    root: Path,
    repo: GitRepository,
    adapters: Sequence[EcosystemAdapter],
    config: PolyReleaseConfig,
) -> ReleasePlan:
    """Compute the next release for the repository at ``root``.

    Raises:
        ShallowHistoryError: If the checkout is shallow
        NoEcosystemDetectedError: If no supported manifest exists
        ManifestError: If a manifest cannot be read
    """
    ensure_full_history(repo)
    discovery = discover_all_packages(root, adapters)

    scan = scan_history(repo, config.version)
    current = resolve_current_version(repo, config.version, scan=scan)
    commits = analyze_commits(repo, discovery.packages, config, root=root, scan=scan)
    bump = calculate_bump(commits, config.commits.types_minor, config.commits.types_patch)

    next_version = None if bump is BumpType.NONE else bump_version(current, bump)
    if next_version is None:
        logger.info("No releasable commits since %s", current)
    else:
        logger.info("Next version: %s -> %s (%s)", current, next_version, bump)

    return ReleasePlan(
        root=root,
        current_version=current,
        bump=bump,
        next_version=next_version,
        commits=commits,
        packages=discovery.packages,
        adapters=discovery.adapters,
    )


def apply_release(plan: ReleasePlan, config: PolyReleaseConfig) -> list[Path]:
    """Write changelogs and then manifest versions for a planned release.

    Returns:
        Changelog files that were written
    """
    if plan.next_version is None:
        return []

    written: list[Path] = []
    if config.changelog.enabled:
        written = generate_changelogs(
            plan.next_version, plan.commits, plan.packages, config.changelog, root=plan.root
        )
    write_all_versions(plan.root, plan.next_version, plan.packages, plan.adapters)
    return written


def publish_release(
    root: Path,
    repo: GitRepository,
    adapters: Sequence[EcosystemAdapter],
    config: PolyReleaseConfig,
) -> tuple[str, list[PublishSummary]]:
    """Publish the version announced by the most recent release marker.

    Returns:
        The published version and one summary per ecosystem considered
    """
    discovery = discover_all_packages(root, adapters)
    version = resolve_current_version(repo, config.version)
    summaries = publish_all_packages(root, version, discovery.packages, discovery.adapters)
    return version, summaries
