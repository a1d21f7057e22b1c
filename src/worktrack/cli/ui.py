"""Rendering helpers shared by worktrack CLI commands."""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Callable, Iterable, TypeVar

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from worktrack.core.config import ConfigError
from worktrack.lifecycle.errors import PartialConsistencyError, WorktrackError
from worktrack.lifecycle.membership import ReconcileReport, ReconcileResult
from worktrack.lifecycle.models import WorkItem
from worktrack.lifecycle.progress import ProgressSummary
from worktrack.lifecycle.store import StoreError

console = Console()

T = TypeVar("T")

_STATUS_STYLES: dict[str, str] = {
    "pending": "dim",
    "in_progress": "cyan",
    "in_review": "yellow",
    "blocked": "red",
    "done": "green",
}


def print_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, sort_keys=True, default=str))


def run_or_exit(fn: Callable[[], T]) -> T:
    """Run a command body, turning lifecycle errors into exit code 1."""
    try:
        return fn()
    except PartialConsistencyError as exc:
        typer.secho(str(exc), fg=typer.colors.YELLOW, err=True)
        typer.secho(
            "Run 'worktrack member reconcile' or retry the operation to repair.",
            fg=typer.colors.YELLOW,
            err=True,
        )
        raise typer.Exit(1) from exc
    except (WorktrackError, ConfigError, StoreError, ValueError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from exc


def render_items(items: Iterable[WorkItem], *, today: date, title: str = "Work items") -> None:
    table = Table(title=title, show_header=True, header_style="bold magenta", border_style="dim")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Priority")
    table.add_column("Assignee")
    table.add_column("Due")

    for item in sorted(items, key=lambda i: (-i.priority.level, i.title)):
        style = _STATUS_STYLES.get(str(item.status), "")
        due = item.due_date.isoformat() if item.due_date else ""
        if item.is_overdue(today):
            due = f"[red]{due} (overdue)[/red]"
        table.add_row(
            item.item_id,
            item.title,
            f"[{style}]{item.status}[/{style}]" if style else str(item.status),
            str(item.priority),
            item.assignee_id,
            due,
        )
    console.print(table)


def render_summary(collection_id: str, summary: ProgressSummary) -> None:
    table = Table(show_header=True, header_style="bold magenta", border_style="dim")
    table.add_column("Status")
    table.add_column("Count", justify="right")
    for status, count in summary.by_status.items():
        table.add_row(status, str(count))
    console.print(
        Panel(
            f"[bold]{summary.progress}%[/bold] complete ({summary.done}/{summary.total} done)",
            title=f"Collection {collection_id}",
            border_style="green" if summary.progress == 100 else "blue",
        )
    )
    console.print(table)


def format_reconcile_result(result: ReconcileResult) -> None:
    """Print a human-readable reconciliation report."""
    if not result.drift_detected and not result.errors and not result.skipped:
        console.print(
            Panel(
                "[green]No drift detected[/green] -- membership matches assignments.",
                title=f"Reconcile {result.collection_id}",
                border_style="green",
            )
        )
        console.print(f"  Assignees scanned: {result.assignees_scanned}")
        return

    table = Table(
        title=f"Reconcile {result.collection_id}",
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("Principal", style="cyan")
    table.add_column("Action")
    for principal_id in result.added:
        table.add_row(principal_id, "[green]added as member[/green]")
    for principal_id in result.repaired:
        table.add_row(principal_id, "[yellow]reference repaired[/yellow]")
    for principal_id in result.skipped:
        table.add_row(principal_id, "[dim]skipped[/dim]")
    console.print(table)

    if result.errors:
        console.print("[bold red]Errors:[/bold red]")
        for error in result.errors:
            console.print(f"  [red]{error}[/red]")

    console.print(f"  Assignees scanned: {result.assignees_scanned}")
    console.print(f"  Members added: {result.added_count}")


def format_reconcile_report(report: ReconcileReport) -> None:
    for result in report.results:
        format_reconcile_result(result)
    for collection_id, error in report.errors.items():
        console.print(f"[red]{collection_id}: {error}[/red]")
    console.print(f"[bold]Total members added:[/bold] {report.total_added}")
