"""Cross-ecosystem package discovery and version writing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from polyrelease.ecosystems.go import GoAdapter
from polyrelease.ecosystems.javascript import JavaScriptAdapter
from polyrelease.ecosystems.rust import RustAdapter
from polyrelease.exceptions import NoEcosystemDetectedError
from polyrelease.publish.propagation import BackoffPolicy, crate_url, npm_url, registry_waiter

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from polyrelease.config.models import PolyReleaseConfig
    from polyrelease.ecosystems.base import EcosystemAdapter, Package

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DiscoveryResult:
    packages: list[Package] = field(default_factory=list)
    # Adapters whose manifest was detected, in registry order
    adapters: list[EcosystemAdapter] = field(default_factory=list)


def default_adapters(config: PolyReleaseConfig | None = None) -> list[EcosystemAdapter]:
    """Build the standard adapter list: JavaScript, Rust, Go.

    Args:
        config: Used for the registry propagation backoff policy
    """
    policy = BackoffPolicy()
    if config is not None:
        policy = BackoffPolicy(
            initial_delay=config.publish.initial_delay,
            max_delay=config.publish.max_delay,
            timeout=config.publish.timeout,
        )
    return [
        JavaScriptAdapter(wait=registry_waiter(npm_url, policy)),
        RustAdapter(wait=registry_waiter(crate_url, policy)),
        GoAdapter(),
    ]


def discover_all_packages(root: Path, adapters: Sequence[EcosystemAdapter]) -> DiscoveryResult:
    """Run every adapter that detects its manifest at ``root``.

    Raises:
        NoEcosystemDetectedError: If no adapter detects anything
        ManifestError: If a detected manifest cannot be read
    """
    result = DiscoveryResult()
    for adapter in adapters:
        if not adapter.detect(root):
            continue
        found = adapter.discover_packages(root)
        logger.info("%s: %d package(s)", adapter.display_name, len(found))
        result.adapters.append(adapter)
        result.packages.extend(found)

    if not result.adapters:
        raise NoEcosystemDetectedError(
            f"No supported manifest found in {root} "
            "(expected package.json, Cargo.toml or go.mod)"
        )
    return result


def write_all_versions(
    root: Path,
    version: str,
    packages: Sequence[Package],
    adapters: Sequence[EcosystemAdapter],
) -> None:
    for adapter in adapters:
        owned = [p for p in packages if p.ecosystem == adapter.kind]
        adapter.write_versions(root, version, owned)
