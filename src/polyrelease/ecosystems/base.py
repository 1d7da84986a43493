"""Ecosystem adapter contract and shared data types.

Each supported ecosystem (JavaScript, Rust, Go) is an independent class
satisfying the EcosystemAdapter protocol. Adapters keep no per-run state;
the collaborators they hold (command runner, registry wait, environment)
are injected at construction so tests can replace them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pathlib import Path


class EcosystemKind(str, Enum):
    JAVASCRIPT = "javascript"
    RUST = "rust"
    GO = "go"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Package:
    """A releasable unit discovered in the repository.

    Identity is (ecosystem, path). The name is used for display and
    dependency edges and may collide across ecosystems.

    Attributes:
        name: Package, crate or module name
        version: Concrete version string (workspace inheritance resolved)
        path: Absolute path of the package directory
        ecosystem: Ecosystem that discovered the package
    """

    name: str
    version: str
    path: Path
    ecosystem: EcosystemKind


@dataclass(frozen=True, slots=True)
class PublishOutcome:
    package_name: str
    success: bool
    error: str | None = None


@dataclass(frozen=True, slots=True)
class PrerequisiteResult:
    ready: bool
    reason: str | None = None


@runtime_checkable
class EcosystemAdapter(Protocol):
    """Capabilities every ecosystem provides to the release pipeline."""

    kind: EcosystemKind
    display_name: str
    manifest_name: str
    # Tag-only ecosystems have no version field to write and nothing to publish
    tag_only: bool

    def detect(self, root: Path) -> bool:
        """Return True if the ecosystem's manifest exists at ``root``."""
        ...

    def discover_packages(self, root: Path) -> list[Package]:
        """List packages, falling back to the root itself without a workspace."""
        ...

    def write_versions(self, root: Path, version: str, packages: list[Package]) -> None:
        """Set ``version`` in every manifest, preserving all other content."""
        ...

    def is_private(self, path: Path) -> bool:
        """Return True if the package at ``path`` must not be published."""
        ...

    def check_publish_prerequisites(self, root: Path) -> PrerequisiteResult:
        """Check tooling and credentials needed to publish."""
        ...

    def publish(self, root: Path, version: str, packages: list[Package]) -> list[PublishOutcome]:
        """Publish ``packages``, stopping at the first failure."""
        ...
