"""Release description (pull request body) rendering.

The hosting platform rejects bodies above a hard character limit, so the
list of commits degrades in three tiers: full detail with bodies, then
subject lines only, then a single line counting what is left.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from polyrelease.config.models import DescriptionConfig

if TYPE_CHECKING:
    from collections.abc import Sequence

    from polyrelease.core.commits import ClassifiedCommit

COMPACT_MARKER = "---\n\n*Remaining commits shown without details:*"

_PREFIXES: dict[str, str] = {
    "feat": "✨ ",
    "fix": "🐛 ",
    "perf": "⚡ ",
    "test": "✅ ",
    "docs": "📝 ",
    "refactor": "♻️ ",
    "chore": "🔧 ",
    "style": "💄 ",
    "build": "📦 ",
    "ci": "👷 ",
}
_BREAKING_PREFIX = "⚠️ BREAKING: "
_UNKNOWN_PREFIX = "❓ "

# Plural nouns for the remainder summary
_NOUNS: dict[str, tuple[str, str]] = {
    "breaking": ("breaking change", "breaking changes"),
    "feat": ("feature", "features"),
    "fix": ("fix", "fixes"),
    "perf": ("performance improvement", "performance improvements"),
    "test": ("test change", "test changes"),
    "docs": ("docs change", "docs changes"),
    "refactor": ("refactor", "refactors"),
    "chore": ("chore", "chores"),
    "style": ("style change", "style changes"),
    "build": ("build change", "build changes"),
    "ci": ("CI change", "CI changes"),
    "other": ("other commit", "other commits"),
}


def get_commit_prefix(commit: ClassifiedCommit) -> str:
    """Label prefix derived from the commit's classification."""
    if commit.is_breaking:
        return _BREAKING_PREFIX
    return _PREFIXES.get(commit.commit_type or "", _UNKNOWN_PREFIX)


def _label_key(commit: ClassifiedCommit) -> str:
    if commit.is_breaking:
        return "breaking"
    return commit.commit_type if commit.commit_type in _PREFIXES else "other"


def format_compact(commit: ClassifiedCommit) -> str:
    return f"- {commit.short_sha}: {get_commit_prefix(commit)}{commit.display_text}"


def format_detailed(commit: ClassifiedCommit) -> str:
    entry = format_compact(commit)
    if commit.body and commit.body.strip():
        indented = "\n".join(f"  {line}" for line in commit.body.splitlines())
        entry += f"\n\n{indented}"
    return entry


def summarize_remaining(commits: Sequence[ClassifiedCommit]) -> str:
    """One-line count of commits that did not fit, broken down by label."""
    counts = Counter(_label_key(c) for c in commits)
    parts = []
    for key, (singular, plural) in _NOUNS.items():
        if counts[key]:
            parts.append(f"{counts[key]} {singular if counts[key] == 1 else plural}")
    noun = "commit" if len(commits) == 1 else "commits"
    return f"...and {len(commits)} more {noun} ({', '.join(parts)})"


def render_release_description(
    commits: Sequence[ClassifiedCommit],
    limits: DescriptionConfig | None = None,
) -> str:
    """Render commits into a body that stays under ``limits.max_chars``.

    Every append is checked against the current tier's budget before it
    happens. The output of a small input is identical to full detail with
    no markers.
    """
    if not commits:
        return ""

    limits = limits or DescriptionConfig()
    separator = "\n\n"
    parts: list[str] = []
    size = 0

    def fits(text: str, budget: int) -> bool:
        extra = len(text) + (len(separator) if parts else 0)
        return size + extra < budget

    def append(text: str) -> None:
        nonlocal size
        size += len(text) + (len(separator) if parts else 0)
        parts.append(text)

    index = 0
    while index < len(commits):
        entry = format_detailed(commits[index])
        if not fits(entry, limits.detail_chars):
            break
        append(entry)
        index += 1

    if index < len(commits) and fits(COMPACT_MARKER, limits.compact_chars):
        append(COMPACT_MARKER)
        while index < len(commits):
            entry = format_compact(commits[index])
            if not fits(entry, limits.compact_chars):
                break
            append(entry)
            index += 1

    if index < len(commits):
        summary = summarize_remaining(commits[index:])
        if fits(summary, limits.max_chars):
            append(summary)

    return separator.join(parts)
