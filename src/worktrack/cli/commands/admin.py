"""Administrative registration of principals and collections."""

from __future__ import annotations

import typer

from worktrack.cli.context import load_service
from worktrack.cli.ui import run_or_exit
from worktrack.lifecycle.models import Principal, parse_role

principal_app = typer.Typer(help="Principal administration")
collection_app = typer.Typer(help="Collection administration")


@principal_app.command("add")
def principal_add_command(
    principal_id: str = typer.Argument(..., help="Principal ID"),
    display_name: str = typer.Option(..., "--name", help="Display name"),
    role: str = typer.Option("member", "--role", help="owner | lead | member"),
) -> None:
    """Register a principal."""

    def _run() -> None:
        try:
            parsed_role = parse_role(role)
        except ValueError as exc:
            raise ValueError(f"Invalid role '{role}'. Expected one of: owner, lead, member") from exc
        load_service().register_principal(
            Principal(principal_id=principal_id, display_name=display_name, role=parsed_role)
        )
        typer.echo(f"Registered {parsed_role} {principal_id}")

    run_or_exit(_run)


@collection_app.command("add")
def collection_add_command(
    collection_id: str = typer.Argument(..., help="Collection ID"),
    name: str = typer.Option(..., "--name", help="Collection name"),
    lead_id: str = typer.Option(..., "--lead", help="Lead principal ID"),
) -> None:
    """Register a collection and link its lead."""

    def _run() -> None:
        load_service().register_collection(collection_id, name, lead_id)
        typer.echo(f"Registered collection {collection_id} led by {lead_id}")

    run_or_exit(_run)


@collection_app.command("status")
def collection_status_command(
    collection_id: str = typer.Argument(..., help="Collection ID"),
    status: str = typer.Argument(..., help="planning | active | paused | done | cancelled"),
) -> None:
    """Change a collection's status."""

    def _run() -> None:
        collection = load_service().set_collection_status(collection_id, status)
        typer.echo(f"{collection_id}: now {collection.status}")

    run_or_exit(_run)


@collection_app.command("archive")
def collection_archive_command(
    collection_id: str = typer.Argument(..., help="Collection ID"),
) -> None:
    """Toggle whether a collection is archived."""

    def _run() -> None:
        archived = load_service().toggle_archive(collection_id)
        typer.echo(f"{collection_id}: {'archived' if archived else 'unarchived'}")

    run_or_exit(_run)
