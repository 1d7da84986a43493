"""polyrelease command line interface."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from polyrelease import __version__
from polyrelease.cli.commands.notes import run_notes
from polyrelease.cli.commands.plan import run_plan
from polyrelease.cli.commands.publish import run_publish
from polyrelease.cli.commands.update import run_update

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="polyrelease",
    help="Synchronized, commit-driven releases for JavaScript, Rust and Go repositories.",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

PATH_HELP = "Repository root (defaults to the current directory)"
CONFIG_HELP = "Configuration file to use"


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    _setup_logging(verbose)


@app.command()
def plan(
    path: str | None = typer.Argument(None, help=PATH_HELP),
    config: str | None = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
    pr: bool = typer.Option(False, "--pr", help="Also print the release PR description."),
) -> None:
    """Show the next release version and affected packages."""
    run_plan(path, config, pr, console, err_console)


@app.command()
def update(
    path: str | None = typer.Argument(None, help=PATH_HELP),
    config: str | None = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
    execute: bool = typer.Option(False, "--execute", help="Write changes (default: dry run)."),
) -> None:
    """Write changelogs and bump every manifest to the next version."""
    run_update(path, config, execute, console, err_console)


@app.command()
def publish(
    path: str | None = typer.Argument(None, help=PATH_HELP),
    config: str | None = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
    force: bool = typer.Option(False, "--force", help="Publish even if HEAD is not a release."),
) -> None:
    """Publish all packages after a release has been merged."""
    run_publish(path, config, force, console, err_console)


@app.command()
def notes(
    path: str | None = typer.Argument(None, help=PATH_HELP),
    config: str | None = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
) -> None:
    """Print the latest changelog section as release notes."""
    run_notes(path, config, console, err_console)


def main() -> None:
    app()
