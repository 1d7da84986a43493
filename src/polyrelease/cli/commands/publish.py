"""Implementation of the 'publish' command.

Runs after a release PR is merged: every detected ecosystem is published
to its registry and a summary is printed. Exits 1 if any package failed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.table import Table

from polyrelease.cli.commands._common import fail, open_project
from polyrelease.core.markers import detect_post_release
from polyrelease.ecosystems import default_adapters
from polyrelease.exceptions import PolyReleaseError
from polyrelease.pipeline import publish_release
from polyrelease.publish import has_publish_failures

if TYPE_CHECKING:
    from rich.console import Console


def run_publish(
    path: str | None,
    config_file: str | None,
    force: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Run the publish command.

    Args:
        path: Optional path to the repository root
        config_file: Optional explicit configuration file
        force: Publish even if HEAD is not a merged release
        console: Console for standard output
        err_console: Console for error output
    """
    root, config, repo = open_project(path, config_file, err_console)

    if not config.publish.enabled:
        console.print("[yellow]Publishing is disabled in config. Nothing to do.[/]")
        return

    try:
        if not force and not detect_post_release(repo):
            console.print(
                "[yellow]HEAD is not a merged release commit. Nothing to publish.[/]\n"
                "[dim]Use [cyan]--force[/] to publish anyway.[/]"
            )
            return
        version, summaries = publish_release(root, repo, default_adapters(config), config)
    except PolyReleaseError as e:
        fail(err_console, e)

    table = Table(title=f"Publish results for {version}", show_header=True, header_style="bold")
    table.add_column("Ecosystem")
    table.add_column("Package")
    table.add_column("Result")
    for summary in summaries:
        if summary.skipped:
            table.add_row(summary.ecosystem, "-", f"[yellow]skipped:[/] {summary.skip_reason}")
            continue
        for outcome in summary.outcomes:
            if outcome.success:
                result = "[green]published[/]"
            else:
                result = f"[red]failed:[/] {outcome.error}"
            table.add_row(summary.ecosystem, outcome.package_name, result)
    console.print(table)

    if has_publish_failures(summaries):
        err_console.print("[red]Error:[/] One or more packages failed to publish.")
        raise SystemExit(1)
