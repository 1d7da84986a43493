"""Ecosystem adapters (JavaScript, Rust, Go) and cross-ecosystem discovery."""

from __future__ import annotations

from polyrelease.ecosystems.base import (
    EcosystemAdapter,
    EcosystemKind,
    Package,
    PrerequisiteResult,
    PublishOutcome,
)
from polyrelease.ecosystems.discovery import (
    DiscoveryResult,
    default_adapters,
    discover_all_packages,
    write_all_versions,
)
from polyrelease.ecosystems.go import GoAdapter
from polyrelease.ecosystems.javascript import JavaScriptAdapter
from polyrelease.ecosystems.rust import RustAdapter

__all__ = [
    "DiscoveryResult",
    "EcosystemAdapter",
    "EcosystemKind",
    "GoAdapter",
    "JavaScriptAdapter",
    "Package",
    "PrerequisiteResult",
    "PublishOutcome",
    "RustAdapter",
    "default_adapters",
    "discover_all_packages",
    "write_all_versions",
]
