"""Helpers shared by CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

from polyrelease.config import load_config
from polyrelease.exceptions import PolyReleaseError
from polyrelease.vcs import GitRepository

if TYPE_CHECKING:
    from rich.console import Console

    from polyrelease.config import PolyReleaseConfig


def fail(err_console: Console, error: PolyReleaseError, prefix: str = "Error") -> NoReturn:
    err_console.print(f"[red]{prefix}:[/] {error}")
    raise SystemExit(1) from error


def open_project(
    path: str | None,
    config_file: str | None,
    err_console: Console,
) -> tuple[Path, PolyReleaseConfig, GitRepository]:
    """Resolve the project root, load its configuration and open the repository.

    Exits with status 1 on any configuration or git error.
    """
    root = (Path(path) if path else Path.cwd()).resolve()

    try:
        config = load_config(root, Path(config_file) if config_file else None)
    except PolyReleaseError as e:
        fail(err_console, e, "Error loading config")

    try:
        repo = GitRepository(root)
    except PolyReleaseError as e:
        fail(err_console, e)

    return root, config, repo
