"""``bidforge show`` / ``events`` / ``verify`` — read-only ledger inspection."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from bidforge.cli.commands._common import console, ledger_option, open_ledger
from bidforge.core.events import JournalIntegrityError
from bidforge.models.events import EventKind
from bidforge.monitor.projection import ProjectProjection
from bidforge.monitor.renderer import ProjectRenderer


def _require_ledger(ledger_db: str) -> None:
    if not Path(ledger_db).exists():
        console.print(f"[bold red]Ledger not found:[/bold red] {ledger_db}")
        console.print("[dim]Post a project first with: bidforge post[/dim]")
        raise typer.Exit(code=1)


def show_cmd(
    project_id: Optional[int] = typer.Argument(
        None, help="Project to show. Lists every project if omitted."
    ),
    ledger_db: str = ledger_option(),
) -> None:
    """Show a project's milestones, bids and disputes."""
    _require_ledger(ledger_db)
    renderer = ProjectRenderer(console=console)

    with open_ledger(ledger_db) as ledger:
        projection = ProjectProjection(ledger)
        if project_id is not None:
            renderer.print_snapshot(projection.snapshot(project_id))
            return

        snapshots = projection.snapshot_all()
        if not snapshots:
            console.print("[dim]No projects posted yet.[/dim]")
            return
        for snapshot in snapshots:
            renderer.print_snapshot(snapshot)


def events_cmd(
    project_id: Optional[int] = typer.Option(
        None, "--project", "-p", help="Only events for this project."
    ),
    kind: Optional[EventKind] = typer.Option(
        None, "--kind", "-k", help="Only events of this kind."
    ),
    ledger_db: str = ledger_option(),
) -> None:
    """Print the notification journal, oldest first."""
    _require_ledger(ledger_db)
    with open_ledger(ledger_db) as ledger:
        events = ledger.get_events(project_id=project_id, kind=kind)

    if not events:
        console.print("[dim]No matching events.[/dim]")
        return
    ProjectRenderer(console=console).print_events(events)


def verify_cmd(
    ledger_db: str = ledger_option(),
) -> None:
    """Verify the hash chain of the notification journal."""
    _require_ledger(ledger_db)
    renderer = ProjectRenderer(console=console)
    with open_ledger(ledger_db) as ledger:
        try:
            valid = ledger.verify_journal()
        except JournalIntegrityError as exc:
            console.print(f"[bold red]Journal verification failed:[/bold red] {exc}")
            renderer.print_journal_verification(False)
            raise typer.Exit(code=1)
    renderer.print_journal_verification(valid)
