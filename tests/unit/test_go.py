"""Tests for the Go ecosystem adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING

from polyrelease.ecosystems.go import TAG_ONLY_REASON, GoAdapter, parse_go_work

if TYPE_CHECKING:
    from pathlib import Path


def write_module(directory: Path, module: str) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "go.mod").write_text(f"module {module}\n\ngo 1.22\n")


class TestParseGoWork:
    """Tests for parse_go_work()."""

    def test_block_form(self):
        text = "go 1.22\n\nuse (\n\t./api // public API\n\t./cmd/tool\n)\n"

        assert parse_go_work(text) == ["./api", "./cmd/tool"]

    def test_single_line_form(self):
        assert parse_go_work("go 1.22\nuse ./lib\nuse ./other\n") == ["./lib", "./other"]

    def test_comments_ignored(self):
        text = "// use ./ignored\nuse (\n  // ./also-ignored\n  ./kept\n)\n"

        assert parse_go_work(text) == ["./kept"]


class TestGoAdapter:
    """Tests for GoAdapter."""

    def test_root_module(self, tmp_path: Path):
        write_module(tmp_path, "github.com/acme/tool")

        (package,) = GoAdapter().discover_packages(tmp_path)

        assert package.name == "github.com/acme/tool"
        assert package.version == "0.0.0"

    def test_workspace_modules(self, tmp_path: Path):
        (tmp_path / "go.work").write_text("go 1.22\n\nuse (\n\t./api\n\t./worker\n)\n")
        write_module(tmp_path / "api", "github.com/acme/api")
        write_module(tmp_path / "worker", "github.com/acme/worker")

        names = [p.name for p in GoAdapter().discover_packages(tmp_path)]

        assert names == ["github.com/acme/api", "github.com/acme/worker"]

    def test_tag_only_behaviour(self, tmp_path: Path):
        write_module(tmp_path, "example.com/m")
        adapter = GoAdapter()
        before = (tmp_path / "go.mod").read_text()

        adapter.write_versions(tmp_path, "2.0.0", adapter.discover_packages(tmp_path))

        assert adapter.tag_only
        assert (tmp_path / "go.mod").read_text() == before
        assert not adapter.is_private(tmp_path)
        prereq = adapter.check_publish_prerequisites(tmp_path)
        assert not prereq.ready
        assert prereq.reason == TAG_ONLY_REASON
        assert adapter.publish(tmp_path, "2.0.0", []) == []
