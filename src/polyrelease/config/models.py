"""Pydantic models for polyrelease configuration.

Every field has a default, so an empty configuration file (or none at
all) yields a working setup that mirrors the built-in release rules.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CommitsConfig(BaseModel):
    """Conventional commit classification rules."""

    model_config = ConfigDict(extra="forbid")

    types_minor: list[str] = Field(default_factory=lambda: ["feat"])
    types_patch: list[str] = Field(default_factory=lambda: ["fix", "perf"])
    breaking_pattern: str = r"^BREAKING[ -]CHANGE:"


class VersionConfig(BaseModel):
    """How the current version is recovered from history."""

    model_config = ConfigDict(extra="forbid")

    search_depths: list[int] = Field(default_factory=lambda: [100, 1000])
    # None scans the whole history when no marker was found in the windows above
    max_history: int | None = None
    tag_prefix: str = "v"

    @model_validator(mode="after")
    def _check_depths(self) -> VersionConfig:
        if any(d <= 0 for d in self.search_depths):
            raise ValueError("search_depths must be positive")
        if self.search_depths != sorted(self.search_depths):
            raise ValueError("search_depths must be increasing")
        if self.max_history is not None and self.max_history <= 0:
            raise ValueError("max_history must be positive")
        return self


class ChangelogConfig(BaseModel):
    """Changelog file settings."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    filename: str = "CHANGELOG.md"
    heading: str = "# Changelog"


class DescriptionConfig(BaseModel):
    """Character budgets for the release description (PR body).

    detail_chars and compact_chars are soft thresholds for the full and
    subject-only tiers. max_chars is the hard limit of the hosting platform.
    """

    model_config = ConfigDict(extra="forbid")

    detail_chars: int = 40_000
    compact_chars: int = 60_000
    max_chars: int = 65_536

    @model_validator(mode="after")
    def _check_budgets(self) -> DescriptionConfig:
        # The remainder summary line needs some headroom below max_chars
        if not 0 < self.detail_chars <= self.compact_chars <= self.max_chars - 1024:
            raise ValueError(
                "budgets must satisfy 0 < detail_chars <= compact_chars <= max_chars - 1024"
            )
        return self


class PublishConfig(BaseModel):
    """Registry publishing settings."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    initial_delay: float = 1.0
    max_delay: float = 16.0
    timeout: float = 120.0


class PolyReleaseConfig(BaseModel):
    """Root configuration object."""

    model_config = ConfigDict(extra="forbid")

    allow_dirty: bool = False
    commits: CommitsConfig = Field(default_factory=CommitsConfig)
    version: VersionConfig = Field(default_factory=VersionConfig)
    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)
    description: DescriptionConfig = Field(default_factory=DescriptionConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
