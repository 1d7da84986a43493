"""Implementation of the 'plan' command.

The plan command shows what the next release would be without changing
anything.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.table import Table

from polyrelease.cli.commands._common import fail, open_project
from polyrelease.core.commits import commits_touching, path_prefix
from polyrelease.ecosystems import default_adapters
from polyrelease.exceptions import PolyReleaseError
from polyrelease.pipeline import plan_release

if TYPE_CHECKING:
    from rich.console import Console


def run_plan(
    path: str | None,
    config_file: str | None,
    show_pr: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Run the plan command.

    Args:
        path: Optional path to the repository root
        config_file: Optional explicit configuration file
        show_pr: Print the release PR description as well
        console: Console for standard output
        err_console: Console for error output
    """
    root, config, repo = open_project(path, config_file, err_console)

    try:
        plan = plan_release(root, repo, default_adapters(config), config)
    except PolyReleaseError as e:
        fail(err_console, e)

    table = Table(title="Packages", show_header=True, header_style="bold")
    table.add_column("Ecosystem")
    table.add_column("Package")
    table.add_column("Path")
    table.add_column("Commits", justify="right")
    for pkg in plan.packages:
        prefix = path_prefix(pkg.path, root)
        count = len(commits_touching(plan.commits, prefix))
        table.add_row(pkg.ecosystem.value, pkg.name, prefix or ".", str(count))
    console.print(table)

    if not plan.has_release:
        console.print(
            f"\n[yellow]No releasable changes since {plan.current_version}.[/] "
            f"({len(plan.commits)} commit(s) analyzed)"
        )
        return

    console.print(
        f"\nNext release: [cyan]{plan.current_version}[/] -> [green]{plan.next_version}[/] "
        f"([bold]{plan.bump}[/] bump from {len(plan.commits)} commit(s))"
    )

    if show_pr:
        console.print("\n[bold]Release PR description:[/]\n")
        console.print(plan.describe(config), markup=False, highlight=False)
