"""Dependency-ordered, fail-fast publishing within one ecosystem."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from polyrelease.ecosystems.base import PublishOutcome
from polyrelease.exceptions import PublishError
from polyrelease.publish.graph import topological_sort

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

    from polyrelease.ecosystems.base import Package
    from polyrelease.publish.propagation import WaitFn

logger = logging.getLogger(__name__)


def publish_in_order(
    packages: Sequence[Package],
    version: str,
    dependencies: Mapping[str, Iterable[str]],
    publish_one: Callable[[Package], None],
    wait: WaitFn | None = None,
) -> list[PublishOutcome]:
    """Publish packages dependencies-first, stopping at the first failure.

    Before every publish after the first, ``wait`` is called for the
    previously published package so the registry serves it to the next
    build. A wait timeout is recorded as the failure of the package that
    was about to be published.

    Args:
        packages: Packages in discovery order
        version: Version being published
        dependencies: Internal dependency names per package
        publish_one: Publishes one package, raising PublishError on failure
        wait: Registry propagation wait, None to skip waiting

    Returns:
        One outcome per attempted package
    """
    outcomes: list[PublishOutcome] = []
    previous: Package | None = None

    for pkg in topological_sort(packages, dependencies):
        try:
            if previous is not None and wait is not None:
                wait(previous.name, version)
            logger.info("Publishing %s@%s", pkg.name, version)
            publish_one(pkg)
        except PublishError as e:
            logger.error("Publishing %s failed: %s", pkg.name, e)
            outcomes.append(PublishOutcome(package_name=pkg.name, success=False, error=str(e)))
            break
        outcomes.append(PublishOutcome(package_name=pkg.name, success=True))
        previous = pkg

    return outcomes
