"""Core business logic for polyrelease.

This module contains the fundamental building blocks:
- Release marker detection and current-version resolution from git
- Conventional commit classification and package attribution
- Version bump calculation
- Changelog and release description rendering
"""

from __future__ import annotations

from polyrelease.core.changelog import (
    extract_latest_section,
    generate_changelogs,
    render_changelog_section,
)
from polyrelease.core.commits import (
    ClassifiedCommit,
    analyze_commits,
    calculate_bump,
    classify_message,
    commits_touching,
    get_breaking_changes,
    group_commits_by_type,
)
from polyrelease.core.description import render_release_description
from polyrelease.core.markers import (
    detect_post_release,
    extract_release_version,
    is_release_commit,
    scan_history,
)
from polyrelease.core.version import (
    BumpType,
    bump_version,
    resolve_current_version,
    select_latest_tag,
)

__all__ = [
    # Version
    "BumpType",
    # Commits
    "ClassifiedCommit",
    "analyze_commits",
    "bump_version",
    "calculate_bump",
    "classify_message",
    "commits_touching",
    "detect_post_release",
    # Changelog
    "extract_latest_section",
    "extract_release_version",
    "generate_changelogs",
    "get_breaking_changes",
    "group_commits_by_type",
    "is_release_commit",
    "render_changelog_section",
    # Description
    "render_release_description",
    "resolve_current_version",
    "scan_history",
    "select_latest_tag",
]
