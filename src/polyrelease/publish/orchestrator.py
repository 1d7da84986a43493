"""Publish orchestrator coordinating every detected ecosystem.

Ecosystems are independent failure domains: a skipped or failed ecosystem
never prevents the next one from being attempted. The overall verdict is
computed afterwards with has_publish_failures().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from polyrelease.ecosystems.base import PublishOutcome
from polyrelease.exceptions import PolyReleaseError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from polyrelease.ecosystems.base import EcosystemAdapter, Package

logger = logging.getLogger(__name__)

ALL_PRIVATE_REASON = "No publishable packages (all private)"


@dataclass(frozen=True, slots=True)
class PublishSummary:
    ecosystem: str
    skipped: bool
    skip_reason: str | None = None
    outcomes: list[PublishOutcome] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return any(not o.success for o in self.outcomes)


def publish_all_packages(
    root: Path,
    version: str,
    packages: Sequence[Package],
    adapters: Sequence[EcosystemAdapter],
) -> list[PublishSummary]:
    """Publish every non-private package of every detected ecosystem.

    Tag-only ecosystems are left out entirely. Unmet prerequisites and
    all-private ecosystems produce a skipped summary carrying the reason.

    Args:
        root: Repository root
        version: Version being published
        packages: All discovered packages
        adapters: Active adapters from discovery

    Returns:
        One summary per ecosystem that was considered
    """
    summaries: list[PublishSummary] = []

    for adapter in adapters:
        if adapter.tag_only:
            logger.info("%s is published via git tags, nothing to upload", adapter.display_name)
            continue

        prereq = adapter.check_publish_prerequisites(root)
        if not prereq.ready:
            reason = prereq.reason or "prerequisites not met"
            logger.warning("Skipping %s publishing: %s", adapter.display_name, reason)
            summaries.append(
                PublishSummary(ecosystem=adapter.display_name, skipped=True, skip_reason=reason)
            )
            continue

        publishable = [
            p for p in packages if p.ecosystem == adapter.kind and not adapter.is_private(p.path)
        ]
        if not publishable:
            summaries.append(
                PublishSummary(
                    ecosystem=adapter.display_name,
                    skipped=True,
                    skip_reason=ALL_PRIVATE_REASON,
                )
            )
            continue

        try:
            outcomes = adapter.publish(root, version, publishable)
        except PolyReleaseError as e:
            logger.error("%s publishing aborted: %s", adapter.display_name, e)
            outcomes = [
                PublishOutcome(package_name=adapter.display_name, success=False, error=str(e))
            ]

        summaries.append(
            PublishSummary(ecosystem=adapter.display_name, skipped=False, outcomes=outcomes)
        )

    return summaries


def has_publish_failures(summaries: Sequence[PublishSummary]) -> bool:
    return any(s.failed for s in summaries)
