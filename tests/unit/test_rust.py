"""Tests for the Rust ecosystem adapter."""

from __future__ import annotations

import tomllib
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from polyrelease.ecosystems.rust import RustAdapter, parse_crate_dependencies
from polyrelease.exceptions import CommandError, RegistryTimeoutError
from polyrelease.process import CommandResult

if TYPE_CHECKING:
    from pathlib import Path

ROOT_MANIFEST = """\
[workspace]
members = ["crates/*"]
exclude = ["crates/scratch"]

[workspace.package]
version = "1.0.0"  # shared version
edition = "2021"

[workspace.dependencies]
core = { path = "crates/core", version = "1.0.0" }
serde = "1"
"""

CORE_MANIFEST = """\
[package]
name = "core"
version.workspace = true
edition.workspace = true
"""

CLI_MANIFEST = """\
[package]
name = "cli"
version = "1.0.0"

# Internal dependency, pinned for publishing
[dependencies]
core = { path = "../core", version = "1.0.0" }
anyhow = "1"
"""


@pytest.fixture
def runner() -> MagicMock:
    return MagicMock(return_value=CommandResult(stdout="", stderr=""))


@pytest.fixture
def adapter(runner: MagicMock) -> RustAdapter:
    return RustAdapter(
        runner=runner,
        wait=MagicMock(),
        env={"CARGO_REGISTRY_TOKEN": "secret"},
        which=lambda name: True,
    )


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    (tmp_path / "Cargo.toml").write_text(ROOT_MANIFEST)
    for name, text in (("core", CORE_MANIFEST), ("cli", CLI_MANIFEST)):
        (tmp_path / "crates" / name).mkdir(parents=True)
        (tmp_path / "crates" / name / "Cargo.toml").write_text(text)
    (tmp_path / "crates" / "scratch").mkdir()
    (tmp_path / "crates" / "scratch" / "Cargo.toml").write_text('[package]\nname = "scratch"\n')
    return tmp_path


class TestDiscovery:
    """Tests for RustAdapter.discover_packages()."""

    def test_members_minus_exclude(self, adapter: RustAdapter, workspace: Path):
        packages = adapter.discover_packages(workspace)

        assert [p.name for p in packages] == ["cli", "core"]

    def test_workspace_version_inherited(self, adapter: RustAdapter, workspace: Path):
        versions = {p.name: p.version for p in adapter.discover_packages(workspace)}

        assert versions == {"cli": "1.0.0", "core": "1.0.0"}

    def test_root_package_is_a_member(self, adapter: RustAdapter, workspace: Path):
        root_text = '[package]\nname = "app"\nversion = "1.0.0"\n\n' + ROOT_MANIFEST
        (workspace / "Cargo.toml").write_text(root_text)

        names = [p.name for p in adapter.discover_packages(workspace)]

        assert names == ["app", "cli", "core"]

    def test_single_crate(self, adapter: RustAdapter, tmp_path: Path):
        (tmp_path / "Cargo.toml").write_text('[package]\nname = "solo"\nversion = "0.3.1"\n')

        (package,) = adapter.discover_packages(tmp_path)

        assert (package.name, package.version) == ("solo", "0.3.1")
        assert package.path == tmp_path.resolve()


class TestWriteVersions:
    """Tests for RustAdapter.write_versions()."""

    def test_versions_and_pins_updated(self, adapter: RustAdapter, workspace: Path):
        adapter.write_versions(workspace, "1.1.0", adapter.discover_packages(workspace))

        root = tomllib.loads((workspace / "Cargo.toml").read_text())
        cli = tomllib.loads((workspace / "crates" / "cli" / "Cargo.toml").read_text())
        assert root["workspace"]["package"]["version"] == "1.1.0"
        assert root["workspace"]["dependencies"]["core"]["version"] == "1.1.0"
        assert root["workspace"]["dependencies"]["serde"] == "1"
        assert cli["package"]["version"] == "1.1.0"
        assert cli["dependencies"]["core"]["version"] == "1.1.0"
        assert cli["dependencies"]["anyhow"] == "1"

    def test_inherited_version_left_alone(self, adapter: RustAdapter, workspace: Path):
        adapter.write_versions(workspace, "1.1.0", adapter.discover_packages(workspace))

        assert (workspace / "crates" / "core" / "Cargo.toml").read_text() == CORE_MANIFEST

    def test_formatting_preserved(self, adapter: RustAdapter, workspace: Path):
        adapter.write_versions(workspace, "1.1.0", adapter.discover_packages(workspace))

        root_text = (workspace / "Cargo.toml").read_text()
        cli_text = (workspace / "crates" / "cli" / "Cargo.toml").read_text()
        assert 'version = "1.1.0"  # shared version' in root_text
        assert "# Internal dependency, pinned for publishing" in cli_text


class TestDependencies:
    """Tests for parse_crate_dependencies()."""

    def test_dependency_tables(self):
        manifest = tomllib.loads(
            """
            [dependencies]
            a = { path = "../a" }
            renamed = { package = "b", path = "../b" }

            [build-dependencies]
            c = "1"

            [dev-dependencies]
            d = { path = "../d" }

            [target.'cfg(unix)'.dependencies]
            e = { path = "../e" }
            """
        )

        assert parse_crate_dependencies(manifest, {"a", "b", "c", "d", "e"}) == [
            "a",
            "b",
            "c",
            "e",
        ]


class TestPublishing:
    """Tests for privacy, prerequisites and publishing."""

    def test_is_private(self, adapter: RustAdapter, tmp_path: Path):
        for name, publish in (("a", "false"), ("b", "[]"), ("c", '["crates-io"]')):
            (tmp_path / name).mkdir()
            (tmp_path / name / "Cargo.toml").write_text(
                f'[package]\nname = "{name}"\npublish = {publish}\n'
            )

        assert adapter.is_private(tmp_path / "a")
        assert adapter.is_private(tmp_path / "b")
        assert not adapter.is_private(tmp_path / "c")

    def test_prerequisites(self, tmp_path: Path):
        missing_token = RustAdapter(env={}, which=lambda name: True)
        missing_cargo = RustAdapter(env={"CARGO_REGISTRY_TOKEN": "t"}, which=lambda name: False)

        assert missing_token.check_publish_prerequisites(tmp_path).reason == (
            "CARGO_REGISTRY_TOKEN not set"
        )
        assert missing_cargo.check_publish_prerequisites(tmp_path).reason == (
            "cargo is not installed"
        )

    def test_publish_order_and_command(
        self, adapter: RustAdapter, runner: MagicMock, workspace: Path
    ):
        outcomes = adapter.publish(workspace, "1.1.0", adapter.discover_packages(workspace))

        assert [o.package_name for o in outcomes] == ["core", "cli"]
        assert [c.args for c in runner.call_args_list] == [
            ("cargo", ["publish", "-p", "core"]),
            ("cargo", ["publish", "-p", "cli"]),
        ]
        assert runner.call_args_list[0].kwargs["cwd"] == workspace
        adapter.wait.assert_called_once_with("core", "1.1.0")

    def test_wait_timeout_fails_next_crate(self, adapter: RustAdapter, workspace: Path):
        adapter.wait.side_effect = RegistryTimeoutError("timed out waiting for core@1.1.0")

        outcomes = adapter.publish(workspace, "1.1.0", adapter.discover_packages(workspace))

        assert [(o.package_name, o.success) for o in outcomes] == [("core", True), ("cli", False)]
        assert "core@1.1.0" in (outcomes[1].error or "")

    def test_command_failure(self, adapter: RustAdapter, runner: MagicMock, workspace: Path):
        runner.side_effect = CommandError("cargo publish failed")

        outcomes = adapter.publish(workspace, "1.1.0", adapter.discover_packages(workspace))

        assert len(outcomes) == 1
        assert outcomes[0].package_name == "core"
        assert not outcomes[0].success
