"""Work item commands: create, move, list, history."""

from __future__ import annotations

from datetime import date, datetime

import typer

from worktrack.cli.context import load_service
from worktrack.cli.ui import print_json, render_items, run_or_exit
from worktrack.lifecycle.transitions import allowed_targets

app = typer.Typer(help="Work item lifecycle commands")


def _parse_due(value: str | None) -> date | None:
    if value is None or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid due date '{value}'. Expected YYYY-MM-DD.") from exc


@app.command("create")
def create_command(
    title: str = typer.Option(..., "--title", help="Work item title"),
    collection_id: str = typer.Option(..., "--collection", help="Owning collection ID"),
    assignee_id: str = typer.Option(..., "--assignee", help="Assignee principal ID"),
    creator_id: str = typer.Option(..., "--creator", help="Creator principal ID"),
    description: str = typer.Option("", "--description", help="Free-form description"),
    priority: str = typer.Option("medium", "--priority", help="low | medium | high | critical"),
    due: str | None = typer.Option(None, "--due", help="Due date (YYYY-MM-DD)"),
    as_json: bool = typer.Option(False, "--json", help="Render the new item as JSON"),
) -> None:
    """Create a work item in the pending state."""

    def _run() -> None:
        item = load_service().create_work_item(
            title=title,
            description=description,
            collection_id=collection_id,
            assignee_id=assignee_id,
            creator_id=creator_id,
            priority=priority,
            due_date=_parse_due(due),
        )
        if as_json:
            print_json(item.to_dict())
            return
        typer.echo(f"Created work item {item.item_id} ({item.status})")

    run_or_exit(_run)


@app.command("move")
def move_command(
    item_id: str = typer.Argument(..., help="Work item ID"),
    to_status: str = typer.Argument(..., help="Target status"),
    actor: str = typer.Option(..., "--as", help="Requesting principal ID"),
    reason: str | None = typer.Option(None, "--reason", help="Reason (stored when blocking)"),
    as_json: bool = typer.Option(False, "--json", help="Render the updated item as JSON"),
) -> None:
    """Request a status transition for a work item."""

    def _run() -> None:
        item = load_service().request_transition(item_id, to_status, actor, reason=reason)
        if as_json:
            print_json(item.to_dict())
            return
        typer.echo(f"{item.item_id}: now {item.status}")
        targets = sorted(allowed_targets(str(item.status)))
        typer.echo(f"- next: {', '.join(targets) if targets else '(terminal)'}")

    run_or_exit(_run)


@app.command("list")
def list_command(
    collection_id: str | None = typer.Option(None, "--collection", help="Collection ID"),
    assignee_id: str | None = typer.Option(None, "--assignee", help="Assignee principal ID"),
    as_json: bool = typer.Option(False, "--json", help="Render items as JSON"),
) -> None:
    """List work items of a collection, of an assignee, or both."""

    def _run() -> None:
        if not collection_id and not assignee_id:
            raise ValueError("Pass --collection, --assignee, or both.")
        service = load_service()
        if collection_id:
            service.repo.get_collection(collection_id)
            items = service.repo.work_items_for(collection_id)
            if assignee_id:
                items = [item for item in items if item.is_assigned_to(assignee_id)]
        else:
            service.repo.get_principal(assignee_id)
            items = service.repo.work_items_assigned_to(assignee_id)
        title = f"Work items in {collection_id}" if collection_id else f"Work items of {assignee_id}"
        if as_json:
            print_json({"items": [item.to_dict() for item in items]})
            return
        if not items:
            typer.echo("No work items found")
            return
        render_items(items, today=datetime.now().date(), title=title)

    run_or_exit(_run)


@app.command("history")
def history_command(
    item_id: str = typer.Argument(..., help="Work item ID"),
    as_json: bool = typer.Option(False, "--json", help="Render events as JSON"),
) -> None:
    """Show the journaled transitions of a work item."""

    def _run() -> None:
        service = load_service()
        service.repo.get_work_item(item_id)
        if service.journal is None:
            raise ValueError("Transition journal is disabled in .worktrack/config.yaml")
        events = service.journal.history(item_id)
        if as_json:
            print_json({"events": [event.to_dict() for event in events]})
            return
        if not events:
            typer.echo("No transitions recorded")
            return
        for event in events:
            line = f"- {event.at} {event.from_status} -> {event.to_status} by {event.actor}"
            if event.reason:
                line += f" ({event.reason})"
            typer.echo(line)

    run_or_exit(_run)
