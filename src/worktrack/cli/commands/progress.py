"""Collection progress commands."""

from __future__ import annotations

import typer

from worktrack.cli.context import load_service
from worktrack.cli.ui import print_json, render_summary, run_or_exit

app = typer.Typer(help="Collection progress commands")


@app.command("recompute")
def recompute_command(
    collection_id: str = typer.Argument(..., help="Collection ID"),
    as_json: bool = typer.Option(False, "--json", help="Render result as JSON"),
) -> None:
    """Re-derive and store a collection's progress from its work items."""

    def _run() -> None:
        progress = load_service().recompute(collection_id)
        if as_json:
            print_json({"collection_id": collection_id, "progress": progress})
            return
        typer.echo(f"{collection_id}: {progress}%")

    run_or_exit(_run)


@app.command("show")
def show_command(
    collection_id: str = typer.Argument(..., help="Collection ID"),
    as_json: bool = typer.Option(False, "--json", help="Render summary as JSON"),
) -> None:
    """Show per-status counts without writing anything."""

    def _run() -> None:
        summary = load_service().summary(collection_id)
        if as_json:
            print_json({"collection_id": collection_id, **summary.to_dict()})
            return
        render_summary(collection_id, summary)

    run_or_exit(_run)
