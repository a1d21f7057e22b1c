"""Membership commands: add, remove, reconcile, reassign-lead."""

from __future__ import annotations

import typer

from worktrack.cli.context import load_service
from worktrack.cli.ui import format_reconcile_report, format_reconcile_result, print_json, run_or_exit

app = typer.Typer(help="Collection membership commands")


@app.command("add")
def add_command(
    collection_id: str = typer.Argument(..., help="Collection ID"),
    principal_id: str = typer.Argument(..., help="Principal ID"),
) -> None:
    """Add a principal to a collection's members."""

    def _run() -> None:
        load_service().add_member(collection_id, principal_id)
        typer.echo(f"Member {principal_id} recorded on {collection_id}")

    run_or_exit(_run)


@app.command("remove")
def remove_command(
    collection_id: str = typer.Argument(..., help="Collection ID"),
    principal_id: str = typer.Argument(..., help="Principal ID"),
) -> None:
    """Remove a principal from a collection's members."""

    def _run() -> None:
        load_service().remove_member(collection_id, principal_id)
        typer.echo(f"Member {principal_id} removed from {collection_id}")

    run_or_exit(_run)


@app.command("reconcile")
def reconcile_command(
    collection_id: str = typer.Argument(..., help="Collection ID"),
    as_json: bool = typer.Option(False, "--json", help="Render result as JSON"),
) -> None:
    """Add work item assignees that are missing from the member list."""

    def _run() -> None:
        result = load_service().reconcile_collection(collection_id)
        if as_json:
            print_json(result.to_dict())
            return
        format_reconcile_result(result)

    run_or_exit(_run)


@app.command("reconcile-all")
def reconcile_all_command(
    as_json: bool = typer.Option(False, "--json", help="Render report as JSON"),
) -> None:
    """Reconcile every collection in the store."""

    def _run() -> None:
        report = load_service().reconcile_all()
        if as_json:
            print_json(report.to_dict())
            return
        format_reconcile_report(report)

    run_or_exit(_run)


@app.command("reassign-lead")
def reassign_lead_command(
    collection_id: str = typer.Argument(..., help="Collection ID"),
    new_lead_id: str = typer.Argument(..., help="Principal ID of the new lead"),
) -> None:
    """Hand a collection to a different lead."""

    def _run() -> None:
        load_service().reassign_lead(collection_id, new_lead_id)
        typer.echo(f"{collection_id} is now led by {new_lead_id}")

    run_or_exit(_run)
