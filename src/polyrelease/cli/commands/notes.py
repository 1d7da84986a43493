"""Implementation of the 'notes' command."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from polyrelease.cli.commands._common import fail
from polyrelease.config import load_config
from polyrelease.core.changelog import extract_latest_section
from polyrelease.exceptions import ChangelogError, PolyReleaseError

if TYPE_CHECKING:
    from rich.console import Console


def run_notes(
    path: str | None,
    config_file: str | None,
    console: Console,
    err_console: Console,
) -> None:
    """Print the newest changelog section, for use as hosted release notes."""
    root = (Path(path) if path else Path.cwd()).resolve()

    try:
        config = load_config(root, Path(config_file) if config_file else None)
    except PolyReleaseError as e:
        fail(err_console, e, "Error loading config")

    changelog = root / config.changelog.filename
    try:
        text = changelog.read_text(encoding="utf-8")
    except OSError as e:
        fail(err_console, ChangelogError(f"Could not read {changelog}: {e}"))

    section = extract_latest_section(text)
    if not section:
        fail(err_console, ChangelogError(f"No release section found in {changelog}"))

    console.print(section, markup=False, highlight=False)
