"""Rust ecosystem adapter for Cargo workspaces published to crates.io."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from polyrelease.ecosystems.base import (
    EcosystemKind,
    Package,
    PrerequisiteResult,
    PublishOutcome,
)
from polyrelease.exceptions import ManifestError
from polyrelease.process import CommandRunner, binary_exists, run_command
from polyrelease.publish.propagation import WaitFn, crate_url, registry_waiter
from polyrelease.publish.sequence import publish_in_order

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

logger = logging.getLogger(__name__)

MANIFEST = "Cargo.toml"

# Tables a crate needs at build time. dev-dependencies are stripped on publish.
PUBLISH_DEPENDENCY_TABLES = ("dependencies", "build-dependencies")
VERSIONED_DEPENDENCY_TABLES = (*PUBLISH_DEPENDENCY_TABLES, "dev-dependencies")


def load_cargo_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ManifestError(f"Could not read {path}: {e}") from e


def _dependency_tables(manifest: Mapping[str, Any], names: tuple[str, ...]) -> Iterator[Any]:
    """Yield dependency tables, including ``[target.<cfg>.*]`` variants."""
    for name in names:
        table = manifest.get(name)
        if table is not None:
            yield table
    for target in (manifest.get("target") or {}).values():
        for name in names:
            table = target.get(name)
            if table is not None:
                yield table


def _crate_name(key: str, spec: Any) -> str:
    # `alias = { package = "real-name", ... }` renames a dependency
    if isinstance(spec, dict) and isinstance(spec.get("package"), str):
        return spec["package"]
    return key


def parse_crate_dependencies(manifest: Mapping[str, Any], names: set[str]) -> list[str]:
    """Internal crates ``manifest`` depends on when published.

    Args:
        manifest: Parsed Cargo.toml
        names: Crate names in the workspace

    Returns:
        Internal dependency names in declaration order
    """
    found: list[str] = []
    for table in _dependency_tables(manifest, PUBLISH_DEPENDENCY_TABLES):
        for key, spec in table.items():
            crate = _crate_name(key, spec)
            if crate in names and crate not in found:
                found.append(crate)
    return found


def _member_dirs(root: Path, workspace: Mapping[str, Any]) -> list[Path]:
    excluded: set[Path] = set()
    for pattern in workspace.get("exclude") or []:
        excluded.update(p.resolve() for p in root.glob(pattern.rstrip("/")))

    members: list[Path] = []
    for pattern in workspace.get("members") or []:
        pattern = pattern.removeprefix("./").rstrip("/")
        candidates = [root] if pattern in ("", ".") else sorted(root.glob(pattern))
        for candidate in candidates:
            directory = candidate.resolve()
            if (
                directory.is_dir()
                and (directory / MANIFEST).is_file()
                and directory not in excluded
                and directory not in members
            ):
                members.append(directory)
    return members


def _resolve_version(package: Mapping[str, Any], workspace_version: str | None) -> str:
    version = package.get("version")
    if isinstance(version, str):
        return version
    if isinstance(version, dict) and version.get("workspace") is True:
        return workspace_version or "0.0.0"
    return "0.0.0"


def _repin_dependencies(doc: Any, names: set[str], version: str) -> None:
    """Point internal ``path`` + ``version`` dependencies at ``version``."""
    tables = list(_dependency_tables(doc, VERSIONED_DEPENDENCY_TABLES))
    workspace = doc.get("workspace")
    if workspace is not None and workspace.get("dependencies") is not None:
        tables.append(workspace["dependencies"])

    for table in tables:
        for key, spec in table.items():
            if not hasattr(spec, "get") or _crate_name(key, spec) not in names:
                continue
            if "path" in spec and "version" in spec:
                spec["version"] = version


class RustAdapter:
    """Cargo workspaces published to crates.io."""

    kind = EcosystemKind.RUST
    display_name = "Rust"
    manifest_name = MANIFEST
    tag_only = False

    def __init__(
        self,
        runner: CommandRunner = run_command,
        wait: WaitFn | None = None,
        env: Mapping[str, str] | None = None,
        which: Callable[[str], bool] = binary_exists,
    ) -> None:
        self.runner = runner
        self.wait = wait if wait is not None else registry_waiter(crate_url)
        self.env = env if env is not None else os.environ
        self.which = which

    def detect(self, root: Path) -> bool:
        return (root / MANIFEST).is_file()

    def discover_packages(self, root: Path) -> list[Package]:
        root = root.resolve()
        root_manifest = load_cargo_toml(root / MANIFEST)
        workspace = root_manifest.get("workspace") or {}
        workspace_version = (workspace.get("package") or {}).get("version")

        directories = _member_dirs(root, workspace)
        if "package" in root_manifest and root not in directories:
            directories.insert(0, root)

        packages: list[Package] = []
        for directory in directories:
            manifest = root_manifest if directory == root else load_cargo_toml(directory / MANIFEST)
            package = manifest.get("package")
            if package is None:
                continue
            packages.append(
                Package(
                    name=package.get("name") or directory.name,
                    version=_resolve_version(package, workspace_version),
                    path=directory,
                    ecosystem=self.kind,
                )
            )

        logger.debug("Discovered %d Rust crate(s)", len(packages))
        return packages

    def write_versions(self, root: Path, version: str, packages: list[Package]) -> None:
        root = root.resolve()
        crates = [p for p in packages if p.ecosystem == self.kind]
        names = {p.name for p in crates}

        paths = [root / MANIFEST]
        paths.extend(
            Path(p.path) / MANIFEST for p in crates if Path(p.path).resolve() != root
        )

        for path in paths:
            try:
                doc = tomlkit.parse(path.read_text(encoding="utf-8"))
            except (OSError, TOMLKitError) as e:
                raise ManifestError(f"Could not read {path}: {e}") from e

            workspace = doc.get("workspace")
            if workspace is not None:
                ws_package = workspace.get("package")
                if ws_package is not None and "version" in ws_package:
                    ws_package["version"] = version

            package = doc.get("package")
            # Inherited versions (`version.workspace = true`) follow the workspace
            if package is not None and isinstance(package.get("version"), str):
                package["version"] = version

            _repin_dependencies(doc, names, version)

            try:
                path.write_text(tomlkit.dumps(doc), encoding="utf-8")
            except OSError as e:
                raise ManifestError(f"Could not write {path}: {e}") from e
            logger.debug("Set version %s in %s", version, path)

    def is_private(self, path: Path) -> bool:
        try:
            package = load_cargo_toml(Path(path) / MANIFEST).get("package") or {}
        except ManifestError:
            return True
        publish = package.get("publish")
        return publish is False or publish == []

    def check_publish_prerequisites(self, root: Path) -> PrerequisiteResult:
        if not self.which("cargo"):
            return PrerequisiteResult(ready=False, reason="cargo is not installed")
        if not self.env.get("CARGO_REGISTRY_TOKEN"):
            return PrerequisiteResult(ready=False, reason="CARGO_REGISTRY_TOKEN not set")
        return PrerequisiteResult(ready=True)

    def publish(self, root: Path, version: str, packages: list[Package]) -> list[PublishOutcome]:
        crates = [p for p in packages if p.ecosystem == self.kind]
        if not crates:
            return []

        names = {p.name for p in crates}
        dependencies: dict[str, list[str]] = {}
        for crate in crates:
            try:
                manifest = load_cargo_toml(Path(crate.path) / MANIFEST)
            except ManifestError:
                dependencies[crate.name] = []
                continue
            dependencies[crate.name] = parse_crate_dependencies(manifest, names)

        def publish_one(crate: Package) -> None:
            self.runner("cargo", ["publish", "-p", crate.name], cwd=root)

        return publish_in_order(crates, version, dependencies, publish_one, self.wait)
