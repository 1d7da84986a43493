"""JavaScript ecosystem adapter for npm, pnpm and yarn workspaces.

Workspace members come from ``pnpm-workspace.yaml`` or the ``workspaces``
field of the root ``package.json``. Version updates splice the new value
into the manifest text so indentation, key order and every other byte stay
as they were.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import yaml

from polyrelease.ecosystems.base import (
    EcosystemKind,
    Package,
    PrerequisiteResult,
    PublishOutcome,
)
from polyrelease.exceptions import ManifestError
from polyrelease.process import CommandRunner, binary_exists, run_command
from polyrelease.publish.propagation import WaitFn, npm_url, registry_waiter
from polyrelease.publish.sequence import publish_in_order

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

logger = logging.getLogger(__name__)

MANIFEST = "package.json"
PNPM_WORKSPACE = "pnpm-workspace.yaml"

# devDependencies are never needed to install a published package
RUNTIME_DEPENDENCY_FIELDS = ("dependencies", "peerDependencies", "optionalDependencies")

JsPackageManager = Literal["pnpm", "yarn", "npm"]

PUBLISH_COMMANDS: dict[str, list[str]] = {
    "pnpm": ["publish", "--no-git-checks", "--access", "public"],
    "yarn": ["npm", "publish", "--access", "public"],
    "npm": ["publish", "--access", "public"],
}


# =============================================================================
# Manifest helpers
# =============================================================================


def read_manifest(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ManifestError(f"Could not read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError(f"{path} does not contain a JSON object")
    return data


def _string_end(text: str, start: int) -> int:
    """Index just past the JSON string opening at ``start``."""
    i = start + 1
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == '"':
            return i + 1
        i += 1
    raise ValueError("unterminated string")


def find_top_level_string(text: str, key: str) -> tuple[int, int] | None:
    """Locate the string value of a top-level key in JSON text.

    Returns:
        (start, end) span of the value including quotes, or None when the key
        is absent from the outermost object or its value is not a string
    """
    depth = 0
    i = 0
    while i < len(text):
        char = text[i]
        if char == '"':
            end = _string_end(text, i)
            if depth == 1:
                after = end
                while after < len(text) and text[after].isspace():
                    after += 1
                if after < len(text) and text[after] == ":" and json.loads(text[i:end]) == key:
                    value = after + 1
                    while value < len(text) and text[value].isspace():
                        value += 1
                    if value < len(text) and text[value] == '"':
                        return value, _string_end(text, value)
                    return None
            i = end
            continue
        if char in "{[":
            depth += 1
        elif char in "}]":
            depth -= 1
        i += 1
    return None


def set_manifest_version(text: str, version: str) -> str:
    """Return ``text`` with the top-level ``"version"`` set to ``version``.

    Only the version value changes. When the field is missing it is inserted
    as the first member using the file's existing indentation.

    Raises:
        ManifestError: If the text is not a JSON object or its ``"version"``
            is not a string
    """
    encoded = json.dumps(version)
    span = find_top_level_string(text, "version")
    if span is not None:
        start, end = span
        return text[:start] + encoded + text[end:]

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestError(f"package.json is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError("package.json does not contain a JSON object")
    if "version" in data:
        raise ManifestError('package.json "version" is not a string')

    brace = text.find("{")
    indent_match = re.search(r"\n([ \t]+)\"", text[brace:])
    indent = indent_match.group(1) if indent_match else "  "
    if text[brace + 1 :].strip().startswith("}"):
        return text[: brace + 1] + f'\n{indent}"version": {encoded}\n' + text[brace + 1 :].lstrip()
    return text[: brace + 1] + f'\n{indent}"version": {encoded},' + text[brace + 1 :]


def internal_dependencies(manifest: Mapping[str, Any], names: set[str]) -> list[str]:
    """Names from ``names`` that ``manifest`` needs at runtime."""
    found: list[str] = []
    for field_name in RUNTIME_DEPENDENCY_FIELDS:
        deps = manifest.get(field_name) or {}
        if isinstance(deps, dict):
            found.extend(d for d in deps if d in names and d not in found)
    return found


def detect_package_manager(root: Path) -> JsPackageManager:
    if (root / "pnpm-lock.yaml").exists():
        return "pnpm"
    if (root / "yarn.lock").exists():
        return "yarn"
    return "npm"


def _workspace_patterns(root: Path, manifest: Mapping[str, Any]) -> list[str]:
    pnpm_file = root / PNPM_WORKSPACE
    if pnpm_file.is_file():
        try:
            config = yaml.safe_load(pnpm_file.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ManifestError(f"Could not parse {pnpm_file}: {e}") from e
        return list(config.get("packages") or [])

    workspaces = manifest.get("workspaces")
    if isinstance(workspaces, list):
        return workspaces
    if isinstance(workspaces, dict):
        return list(workspaces.get("packages") or [])
    return []


def _expand_patterns(root: Path, patterns: list[str]) -> list[Path]:
    included: list[Path] = []
    excluded: set[Path] = set()
    for pattern in patterns:
        negated = pattern.startswith("!")
        pattern = pattern.removeprefix("!").removeprefix("./").rstrip("/")
        if not pattern:
            continue
        matches = sorted(
            p.resolve() for p in root.glob(pattern) if p.is_dir() and (p / MANIFEST).is_file()
        )
        if negated:
            excluded.update(matches)
        else:
            included.extend(m for m in matches if m not in included)
    return [p for p in included if p not in excluded]


# =============================================================================
# Adapter
# =============================================================================


class JavaScriptAdapter:
    """npm/pnpm/yarn workspaces published to the npm registry."""

    kind = EcosystemKind.JAVASCRIPT
    display_name = "JavaScript"
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
        self.wait = wait if wait is not None else registry_waiter(npm_url)
        self.env = env if env is not None else os.environ
        self.which = which

    def detect(self, root: Path) -> bool:
        return (root / MANIFEST).is_file()

    def discover_packages(self, root: Path) -> list[Package]:
        root = root.resolve()
        root_manifest = read_manifest(root / MANIFEST)

        packages: list[Package] = []
        for directory in _expand_patterns(root, _workspace_patterns(root, root_manifest)):
            manifest = read_manifest(directory / MANIFEST)
            packages.append(
                Package(
                    name=manifest.get("name") or directory.name,
                    version=manifest.get("version") or "0.0.0",
                    path=directory,
                    ecosystem=self.kind,
                )
            )

        if not packages:
            packages.append(
                Package(
                    name=root_manifest.get("name") or root.name,
                    version=root_manifest.get("version") or "0.0.0",
                    path=root,
                    ecosystem=self.kind,
                )
            )

        logger.debug("Discovered %d JavaScript package(s)", len(packages))
        return packages

    def write_versions(self, root: Path, version: str, packages: list[Package]) -> None:
        root = root.resolve()
        targets = [root / MANIFEST]
        for pkg in packages:
            if pkg.ecosystem != self.kind or Path(pkg.path).resolve() == root:
                continue
            targets.append(Path(pkg.path) / MANIFEST)

        for manifest_path in targets:
            try:
                text = manifest_path.read_text(encoding="utf-8")
                manifest_path.write_text(set_manifest_version(text, version), encoding="utf-8")
            except (OSError, ValueError) as e:
                raise ManifestError(f"Could not update version in {manifest_path}: {e}") from e
            logger.debug("Set version %s in %s", version, manifest_path)

    def is_private(self, path: Path) -> bool:
        try:
            return read_manifest(Path(path) / MANIFEST).get("private") is True
        except ManifestError:
            # Unreadable manifests are never published
            return True

    def check_publish_prerequisites(self, root: Path) -> PrerequisiteResult:
        pm = detect_package_manager(root)
        if not self.which(pm):
            return PrerequisiteResult(ready=False, reason=f"{pm} is not installed")
        if not self.env.get("NODE_AUTH_TOKEN") and not self.env.get("NPM_TOKEN"):
            return PrerequisiteResult(ready=False, reason="NODE_AUTH_TOKEN (or NPM_TOKEN) not set")
        return PrerequisiteResult(ready=True)

    def publish(self, root: Path, version: str, packages: list[Package]) -> list[PublishOutcome]:
        js_packages = [p for p in packages if p.ecosystem == self.kind]
        if not js_packages:
            return []

        pm = detect_package_manager(root)
        args = PUBLISH_COMMANDS[pm]
        names = {p.name for p in js_packages}
        dependencies: dict[str, list[str]] = {}
        for pkg in js_packages:
            try:
                dependencies[pkg.name] = internal_dependencies(
                    read_manifest(Path(pkg.path) / MANIFEST), names
                )
            except ManifestError:
                dependencies[pkg.name] = []

        def publish_one(pkg: Package) -> None:
            self.runner(pm, args, cwd=Path(pkg.path))

        return publish_in_order(js_packages, version, dependencies, publish_one, self.wait)
