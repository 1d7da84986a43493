"""Dependency graph utilities.

Provides topological sorting for determining publish order within one
ecosystem. When package A depends on package B, B must be published
(and visible on the registry) before A.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from polyrelease.ecosystems.base import Package

logger = logging.getLogger(__name__)


def topological_sort(
    packages: Sequence[Package],
    dependencies: Mapping[str, Iterable[str]],
) -> list[Package]:
    """Order packages so that dependencies come before dependents.

    Uses Kahn's algorithm. Only edges between packages in ``packages`` are
    considered; external dependencies are ignored. Packages that become
    ready at the same time keep their discovery order.

    A cycle does not raise: packages that could not be ordered are appended
    in their original discovery order.

    Args:
        packages: Packages in discovery order
        dependencies: Map of package name → names it depends on

    Returns:
        Packages in publish order

    Example:
        If A depends on B, and B depends on C:
        topological_sort([A, B, C]) → [C, B, A]
    """
    names = [p.name for p in packages]
    # Indexes rather than names, so packages sharing a name stay distinct
    indexes_by_name: dict[str, list[int]] = {}
    for index, name in enumerate(names):
        indexes_by_name.setdefault(name, []).append(index)

    in_degree = [0] * len(packages)
    dependents: list[list[int]] = [[] for _ in packages]

    for index, name in enumerate(names):
        # Duplicated dependency entries count once
        for dep in set(dependencies.get(name, ())):
            if dep == name:
                continue
            for dep_index in indexes_by_name.get(dep, ()):
                in_degree[index] += 1
                dependents[dep_index].append(index)

    queue = deque(index for index, degree in enumerate(in_degree) if degree == 0)
    ordered: list[int] = []

    while queue:
        index = queue.popleft()
        ordered.append(index)
        for dependent in sorted(dependents[index]):
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    if len(ordered) < len(packages):
        placed = set(ordered)
        remaining = [index for index in range(len(packages)) if index not in placed]
        logger.warning(
            "Dependency cycle among %s; publishing them in discovery order",
            ", ".join(names[index] for index in remaining),
        )
        ordered.extend(remaining)

    return [packages[index] for index in ordered]
