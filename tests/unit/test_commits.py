"""Tests for conventional commit classification, attribution and bumps."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from conftest import history_repo

from polyrelease.config.models import PolyReleaseConfig
from polyrelease.core.commits import (
    ClassifiedCommit,
    analyze_commits,
    attribute_files,
    calculate_bump,
    classify_message,
    commits_touching,
    get_breaking_changes,
    group_commits_by_type,
    package_prefixes,
)
from polyrelease.core.version import BumpType
from polyrelease.ecosystems.base import EcosystemKind, Package
from polyrelease.exceptions import ShallowHistoryError

if TYPE_CHECKING:
    from pathlib import Path


def classified(message: str, sha: str = "a" * 40, **kwargs) -> ClassifiedCommit:
    commit = classify_message(sha, message)
    if not kwargs:
        return commit
    return ClassifiedCommit(
        sha=commit.sha,
        commit_type=commit.commit_type,
        scope=commit.scope,
        subject=commit.subject,
        body=commit.body,
        is_breaking=commit.is_breaking,
        raw_first_line=commit.raw_first_line,
        **kwargs,
    )


class TestClassifyMessage:
    """Tests for classify_message()."""

    def test_simple_feat(self):
        commit = classify_message("abc", "feat: add new feature")

        assert commit.is_conventional
        assert commit.commit_type == "feat"
        assert commit.scope is None
        assert commit.subject == "add new feature"
        assert commit.body is None
        assert not commit.is_breaking

    def test_scope(self):
        commit = classify_message("abc", "fix(api): handle null response")

        assert commit.commit_type == "fix"
        assert commit.scope == "api"
        assert commit.subject == "handle null response"

    def test_type_is_lower_cased(self):
        assert classify_message("abc", "FEAT: shout").commit_type == "feat"

    def test_breaking_exclamation(self):
        commit = classify_message("abc", "feat(core)!: change config format")

        assert commit.is_breaking
        assert commit.commit_type == "feat"
        assert commit.scope == "core"

    @pytest.mark.parametrize("footer", ["BREAKING CHANGE: gone", "BREAKING-CHANGE: gone"])
    def test_breaking_footer(self, footer: str):
        commit = classify_message("abc", f"refactor: rework\n\nDetails here.\n\n{footer}")

        assert commit.is_breaking
        assert commit.body == f"Details here.\n\n{footer}"

    def test_breaking_footer_on_non_conventional_commit(self):
        commit = classify_message("abc", "Rework everything\n\nBREAKING CHANGE: all of it")

        assert commit.commit_type is None
        assert commit.is_breaking

    def test_non_conventional_kept(self):
        commit = classify_message("abc", "Update README.md")

        assert not commit.is_conventional
        assert commit.subject is None
        assert commit.raw_first_line == "Update README.md"
        assert commit.display_text == "Update README.md"

    def test_missing_space_after_colon(self):
        assert classify_message("abc", "feat:no space").commit_type is None

    def test_body_is_stripped(self):
        commit = classify_message("abc", "fix: bug\n\n   body text  \n\n")

        assert commit.body == "body text"


class TestAttribution:
    """Tests for package_prefixes() and attribute_files()."""

    def test_prefixes_relative_to_root(self, tmp_path: Path):
        packages = [
            Package("root", "1.0.0", tmp_path, EcosystemKind.JAVASCRIPT),
            Package("core", "1.0.0", tmp_path / "packages" / "core", EcosystemKind.JAVASCRIPT),
        ]

        assert package_prefixes(packages, tmp_path) == [("root", ""), ("core", "packages/core")]

    def test_path_component_boundary(self):
        prefixes = [("a", "packages/a"), ("ab", "packages/ab")]

        assert attribute_files(["packages/ab/index.js"], prefixes) == frozenset({"ab"})
        assert attribute_files(["packages/a/index.js"], prefixes) == frozenset({"a"})

    def test_exact_path_match(self):
        assert attribute_files(["crates/cli"], [("cli", "crates/cli")]) == frozenset({"cli"})

    def test_root_package_gets_everything(self):
        prefixes = [("root", ""), ("core", "packages/core")]

        assert attribute_files(["README.md"], prefixes) == frozenset({"root"})
        assert attribute_files(["packages/core/a.ts"], prefixes) == frozenset({"root", "core"})

    def test_no_files(self):
        assert attribute_files([], [("root", "")]) == frozenset()


class TestAnalyzeCommits:
    """Tests for analyze_commits()."""

    def test_commits_since_marker_oldest_first(self, tmp_path: Path):
        repo = history_repo(["feat: newest", "fix: older", "release v1.0.0", "feat: old"], tmp_path)
        packages = [Package("core", "1.0.0", tmp_path / "core", EcosystemKind.RUST)]
        repo.get_changed_files.side_effect = lambda sha: ["core/src/lib.rs"]

        commits = analyze_commits(repo, packages, PolyReleaseConfig())

        assert [c.subject for c in commits] == ["older", "newest"]
        assert all(c.affected_packages == frozenset({"core"}) for c in commits)
        assert commits[0].changed_files == ("core/src/lib.rs",)

    def test_unattributed_commits_are_kept(self, tmp_path: Path):
        repo = history_repo(["docs: readme"], tmp_path)
        repo.get_changed_files.return_value = ["README.md"]
        packages = [Package("core", "1.0.0", tmp_path / "core", EcosystemKind.RUST)]

        commits = analyze_commits(repo, packages, PolyReleaseConfig())

        assert len(commits) == 1
        assert commits[0].affected_packages == frozenset()

    def test_shallow_clone_rejected(self, tmp_path: Path):
        repo = history_repo(["feat: x"], tmp_path)
        repo.is_shallow.return_value = True

        with pytest.raises(ShallowHistoryError, match="unshallow"):
            analyze_commits(repo, [], PolyReleaseConfig())


class TestCalculateBump:
    """Tests for calculate_bump()."""

    def test_feat_and_fix_is_minor(self):
        commits = [classified("feat: a"), classified("fix: b")]
        assert calculate_bump(commits) == BumpType.MINOR

    def test_breaking_is_major(self):
        assert calculate_bump([classified("feat!: redesign")]) == BumpType.MAJOR

    def test_breaking_without_type_is_major(self):
        commits = [classified("Rewrite\n\nBREAKING CHANGE: yes"), classified("fix: b")]
        assert calculate_bump(commits) == BumpType.MAJOR

    def test_perf_is_patch(self):
        assert calculate_bump([classified("perf: faster")]) == BumpType.PATCH

    def test_chore_and_docs_is_none(self):
        commits = [classified("chore: deps"), classified("docs: typo"), classified("WIP")]
        assert calculate_bump(commits) == BumpType.NONE

    def test_empty(self):
        assert calculate_bump([]) == BumpType.NONE

    def test_custom_types(self):
        commits = [classified("refactor: tidy")]
        assert calculate_bump(commits, types_patch=("refactor",)) == BumpType.PATCH


class TestGrouping:
    """Tests for the grouping helpers."""

    def test_group_by_type(self):
        commits = [
            classified("feat: a"),
            classified("fix: b"),
            classified("feat: c"),
            classified("x"),
        ]

        grouped = group_commits_by_type(commits)

        assert [c.subject for c in grouped["feat"]] == ["a", "c"]
        assert len(grouped["fix"]) == 1

    def test_commits_touching_matches_paths(self):
        commits = [
            classified("feat: a", changed_files=("packages/core/a.js", "README.md")),
            classified("fix: b", changed_files=("packages/core-extra/b.js",)),
        ]

        assert [c.subject for c in commits_touching(commits, "packages/core")] == ["a"]
        assert [c.subject for c in commits_touching(commits, "")] == ["a", "b"]

    def test_get_breaking_changes(self):
        commits = [classified("feat!: a"), classified("fix: b")]

        assert [c.subject for c in get_breaking_changes(commits)] == ["a"]
