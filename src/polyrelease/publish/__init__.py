"""Registry publishing: ordering, propagation waits and orchestration."""

from __future__ import annotations

from polyrelease.publish.graph import topological_sort
from polyrelease.publish.orchestrator import (
    PublishSummary,
    has_publish_failures,
    publish_all_packages,
)
from polyrelease.publish.propagation import BackoffPolicy, wait_for_version
from polyrelease.publish.sequence import publish_in_order

__all__ = [
    "BackoffPolicy",
    "PublishSummary",
    "has_publish_failures",
    "publish_all_packages",
    "publish_in_order",
    "topological_sort",
    "wait_for_version",
]
