"""Exception hierarchy for polyrelease.

All errors raised by polyrelease derive from PolyReleaseError so callers
can catch everything from this package with a single except clause.

Precondition failures (shallow history, no ecosystem detected) are raised
before any file is written. Publish-phase errors are normally caught by
the orchestrator and recorded as per-package outcomes instead of
propagating.
"""

from __future__ import annotations


class PolyReleaseError(Exception):
    """Base exception for all polyrelease errors."""


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(PolyReleaseError):
    """Base class for configuration problems."""


class ConfigNotFoundError(ConfigError):
    """An explicitly requested configuration file does not exist."""


class ConfigValidationError(ConfigError):
    """Configuration file contents failed validation."""


# =============================================================================
# Version control
# =============================================================================


class GitError(PolyReleaseError):
    """A git command failed or returned unexpected output."""

    def __init__(self, message: str, *, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr


class ShallowHistoryError(GitError):
    """The checkout does not contain the full commit history."""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Repository at {path} is a shallow clone. Commit analysis needs the "
            "full history: run 'git fetch --unshallow' (or use fetch-depth: 0 in CI)."
        )


# =============================================================================
# Project / manifests
# =============================================================================


class ProjectError(PolyReleaseError):
    """Problem with the repository layout or its manifests."""


class NoEcosystemDetectedError(ProjectError):
    """No known ecosystem manifest exists at the repository root."""


class ManifestError(ProjectError):
    """A manifest could not be read, parsed or updated."""


class ChangelogError(PolyReleaseError):
    """Changelog file could not be read or written."""


# =============================================================================
# Publishing
# =============================================================================


class PublishError(PolyReleaseError):
    """Base class for publish-phase failures."""


class CommandError(PublishError):
    """An external command exited non-zero or could not be started."""

    def __init__(self, message: str, *, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr

    def __str__(self) -> str:
        base = super().__str__()
        if self.stderr:
            return f"{base}: {self.stderr.strip()}"
        return base


class RegistryTimeoutError(PublishError):
    """A published version did not become visible on its registry in time."""
