"""
Worktrack CLI - role-based work item tracking for project collections.

Usage:
    worktrack init
    worktrack item move <item-id> <status> --as <principal-id>
    worktrack member reconcile <collection-id>
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from worktrack.cli.commands import admin, items, members, progress
from worktrack.cli.ui import console, run_or_exit
from worktrack.core.config import CONFIG_DIRNAME, WorktrackConfig, load_config, save_config

__version__ = "0.4.0"

app = typer.Typer(
    name="worktrack",
    help="Track work items, collection progress and membership",
    add_completion=False,
    no_args_is_help=True,
)

app.add_typer(items.app, name="item")
app.add_typer(progress.app, name="progress")
app.add_typer(members.app, name="member")
app.add_typer(admin.principal_app, name="principal")
app.add_typer(admin.collection_app, name="collection")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"worktrack {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """Configure logging for every subcommand."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def init(
    store_path: str | None = typer.Option(None, "--store-path", help="Data directory, relative to the project"),
    no_journal: bool = typer.Option(False, "--no-journal", help="Disable the transition journal"),
) -> None:
    """Create .worktrack/config.yaml in the current directory."""

    def _run() -> None:
        repo_root = Path.cwd()
        config = load_config(repo_root)
        config.store_backend = "json"
        if store_path:
            config.store_path = store_path
        config.journal_enabled = not no_journal
        save_config(repo_root, config)
        console.print(f"[green]Initialized[/green] {repo_root / CONFIG_DIRNAME / 'config.yaml'}")

    run_or_exit(_run)


def main() -> None:
    app()


__all__ = ["WorktrackConfig", "__version__", "app", "main"]


if __name__ == "__main__":
    main()
