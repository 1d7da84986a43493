"""Implementation of the 'update' command.

The update command writes changelogs and manifest versions locally.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.panel import Panel

from polyrelease.cli.commands._common import fail, open_project
from polyrelease.ecosystems import default_adapters
from polyrelease.exceptions import PolyReleaseError
from polyrelease.pipeline import apply_release, plan_release

if TYPE_CHECKING:
    from rich.console import Console


def run_update(
    path: str | None,
    config_file: str | None,
    execute: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Run the update command.

    Args:
        path: Optional path to the repository root
        config_file: Optional explicit configuration file
        execute: Whether to actually apply changes
        console: Console for standard output
        err_console: Console for error output
    """
    root, config, repo = open_project(path, config_file, err_console)

    # Check for dirty working directory
    if execute and not config.allow_dirty and repo.is_dirty():
        err_console.print(
            "[red]Error:[/] Repository has uncommitted changes.\n"
            "Commit or stash them, or use [cyan]allow_dirty = true[/] in config."
        )
        raise SystemExit(1)

    try:
        plan = plan_release(root, repo, default_adapters(config), config)
    except PolyReleaseError as e:
        fail(err_console, e)

    if not plan.has_release:
        console.print(
            "[yellow]No releasable changes found (only non-release commit types).[/]"
        )
        return

    mode_str = "[green]EXECUTING[/]" if execute else "[yellow]DRY-RUN[/]"
    console.print(
        f"\n{mode_str} - Updating from [cyan]{plan.current_version}[/] "
        f"to [green]{plan.next_version}[/]\n"
    )

    manifests = sorted({a.manifest_name for a in plan.adapters if not a.tag_only})

    if not execute:
        lines = [f"  • Update version in [cyan]{name}[/]" for name in manifests]
        if config.changelog.enabled:
            lines.append(
                f"  • Prepend a section to each affected [cyan]{config.changelog.filename}[/]"
            )
        console.print(
            Panel(
                "[bold]Would make the following changes:[/]\n\n" + "\n".join(lines),
                title="[yellow]Dry Run Preview[/]",
                border_style="yellow",
            )
        )
        console.print("\n[dim]Run with [cyan]--execute[/] to apply these changes.[/]")
        return

    try:
        written = apply_release(plan, config)
    except PolyReleaseError as e:
        fail(err_console, e, "Error applying release")

    for changelog in written:
        console.print(f"  [green]✓[/] Updated {changelog.relative_to(root)}")
    for name in manifests:
        console.print(f"  [green]✓[/] Updated version in {name}")

    console.print(
        Panel(
            f"[green]Successfully updated to version {plan.next_version}![/]\n\n"
            "Next steps:\n"
            "  1. Review the changes\n"
            f"  2. Commit: [cyan]git add . && git commit -m "
            f"'chore: release v{plan.next_version}'[/]\n"
            "  3. After merging: [cyan]polyrelease publish[/]",
            title="[green]Update Complete[/]",
            border_style="green",
        )
    )
