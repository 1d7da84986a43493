"""Go ecosystem adapter.

Go modules are published by pushing git tags, so there is no version field
to write and no registry upload to perform. The adapter only discovers
modules so their commits get changelogs.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from polyrelease.ecosystems.base import (
    EcosystemKind,
    Package,
    PrerequisiteResult,
    PublishOutcome,
)
from polyrelease.exceptions import ManifestError

logger = logging.getLogger(__name__)

MANIFEST = "go.mod"
WORKSPACE_FILE = "go.work"
TAG_ONLY_REASON = "Go modules are published via git tags (handled by GitHub release)"

_MODULE_PATTERN = re.compile(r"^\s*module\s+(\S+)", re.MULTILINE)


def _strip_comment(line: str) -> str:
    return line.split("//", 1)[0].strip()


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"`":
        return value[1:-1]
    return value


def parse_go_work(text: str) -> list[str]:
    """Directories named by ``use`` directives in a go.work file.

    Handles both ``use ./a`` and the block form ``use ( ./a ./b )``.
    """
    dirs: list[str] = []
    in_block = False
    for raw in text.splitlines():
        line = _strip_comment(raw)
        if not line:
            continue
        if in_block:
            if line.startswith(")"):
                in_block = False
                continue
            dirs.append(_unquote(line))
            continue
        if re.fullmatch(r"use\s*\(", line):
            in_block = True
            continue
        match = re.fullmatch(r"use\s+(\S+)", line)
        if match:
            dirs.append(_unquote(match.group(1)))
    return dirs


def read_module_name(go_mod: Path) -> str | None:
    try:
        text = go_mod.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Could not read {go_mod}: {e}") from e
    match = _MODULE_PATTERN.search(text)
    return _unquote(match.group(1)) if match else None


class GoAdapter:
    kind = EcosystemKind.GO
    display_name = "Go"
    manifest_name = MANIFEST
    tag_only = True

    def detect(self, root: Path) -> bool:
        return (root / MANIFEST).is_file() or (root / WORKSPACE_FILE).is_file()

    def discover_packages(self, root: Path) -> list[Package]:
        root = root.resolve()
        directories: list[Path] = []

        work_file = root / WORKSPACE_FILE
        if work_file.is_file():
            for entry in parse_go_work(work_file.read_text(encoding="utf-8")):
                directory = (root / entry).resolve()
                if (directory / MANIFEST).is_file() and directory not in directories:
                    directories.append(directory)

        if not directories and (root / MANIFEST).is_file():
            directories.append(root)

        packages = [
            Package(
                name=read_module_name(d / MANIFEST) or d.name,
                version="0.0.0",
                path=d,
                ecosystem=self.kind,
            )
            for d in directories
        ]
        logger.debug("Discovered %d Go module(s)", len(packages))
        return packages

    def write_versions(self, root: Path, version: str, packages: list[Package]) -> None:
        logger.debug("Go modules carry no version field, nothing to write")

    def is_private(self, path: Path) -> bool:
        return False

    def check_publish_prerequisites(self, root: Path) -> PrerequisiteResult:
        return PrerequisiteResult(ready=False, reason=TAG_ONLY_REASON)

    def publish(self, root: Path, version: str, packages: list[Package]) -> list[PublishOutcome]:
        return []
