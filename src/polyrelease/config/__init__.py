"""Configuration management for polyrelease."""

from __future__ import annotations

from polyrelease.config.loader import load_config
from polyrelease.config.models import (
    ChangelogConfig,
    CommitsConfig,
    DescriptionConfig,
    PolyReleaseConfig,
    PublishConfig,
    VersionConfig,
)

__all__ = [
    "ChangelogConfig",
    "CommitsConfig",
    "DescriptionConfig",
    "PolyReleaseConfig",
    "PublishConfig",
    "VersionConfig",
    "load_config",
]
