"""Rich terminal renderer for project snapshots.

Color scheme
------------
- green     : paid milestone, open bidding, resolved-yes dispute
- yellow    : unpaid milestone
- bold red  : open dispute, broken journal
- dim       : closed bidding, unselected bids
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from bidforge.models.events import LedgerEvent
from bidforge.models.project import BiddingState, DisputeState
from bidforge.monitor.projection import ProjectSnapshot

_BIDDING_STYLES: dict[BiddingState, str] = {
    BiddingState.OPEN: "[green]OPEN[/green]",
    BiddingState.CLOSED: "[dim]CLOSED[/dim]",
}

_DISPUTE_STYLES: dict[DisputeState, str] = {
    DisputeState.UNDISPUTED: "[green]undisputed[/green]",
    DisputeState.DISPUTED: "[bold red]DISPUTED[/bold red]",
}


class ProjectRenderer:
    """Renders ``ProjectSnapshot`` as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_snapshot(self, snapshot: ProjectSnapshot) -> Panel:
        """Render a snapshot as a Panel with milestone, bid and dispute tables."""
        summary_parts = [
            f"[bold]Owner:[/bold] {snapshot.owner}",
            f"[bold]Budget:[/bold] {snapshot.budget}",
            f"[bold]Deadline:[/bold] {snapshot.deadline}",
            f"[bold]Bidding:[/bold] {_BIDDING_STYLES[snapshot.bidding_state]}",
            f"[bold]Status:[/bold] {_DISPUTE_STYLES[snapshot.dispute_state]}",
        ]
        if snapshot.selected_bidder is not None:
            summary_parts.append(
                f"[bold]Contractor:[/bold] {snapshot.selected_bidder} "
                f"(bid {snapshot.selected_bid_index})"
            )

        footer_parts = [
            f"[bold]Paid:[/bold] {snapshot.paid_total} "
            f"({snapshot.paid_count}/{len(snapshot.milestones)})",
            f"[bold]Outstanding:[/bold] {snapshot.unpaid_total}",
            f"[bold]Escrow pool:[/bold] {snapshot.escrow_balance}",
            f"[bold]Events:[/bold] {snapshot.event_count}",
        ]
        if snapshot.underfunded:
            footer_parts.append("[bold yellow]pool below outstanding[/bold yellow]")
        journal = (
            "[green]valid[/green]" if snapshot.journal_valid else "[bold red]BROKEN[/bold red]"
        )
        footer_parts.append(f"[bold]Journal:[/bold] {journal}")

        renderables = [
            Text.from_markup("  |  ".join(summary_parts)),
            Text(""),
            self._build_milestone_table(snapshot),
        ]
        if snapshot.bids:
            renderables.extend([Text(""), self._build_bid_table(snapshot)])
        if snapshot.disputes:
            renderables.extend([Text(""), self._build_dispute_table(snapshot)])
        renderables.extend([Text(""), Text.from_markup("  |  ".join(footer_parts))])

        return Panel(
            Group(*renderables),
            title=f"[bold]Project {snapshot.project_id}: {snapshot.description}[/bold]",
            subtitle=f"Last updated: {snapshot.last_updated.strftime('%Y-%m-%d %H:%M:%S UTC')}",
            border_style="blue",
            padding=(1, 2),
        )

    def _build_milestone_table(self, snapshot: ProjectSnapshot) -> Table:
        table = Table(title="Milestones", header_style="bold cyan", expand=True)
        table.add_column("#", style="dim", width=4, justify="right")
        table.add_column("Amount", justify="right")
        table.add_column("Proposed", justify="right")
        table.add_column("State", justify="center")

        for m in snapshot.milestones:
            proposed = str(m.proposed_amount) if m.proposed_amount is not None else "[dim]-[/dim]"
            state = "[green]PAID[/green]" if m.paid else "[yellow]pending[/yellow]"
            table.add_row(str(m.index), str(m.amount), proposed, state)
        return table

    def _build_bid_table(self, snapshot: ProjectSnapshot) -> Table:
        table = Table(title="Bids", header_style="bold cyan", expand=True)
        table.add_column("#", style="dim", width=4, justify="right")
        table.add_column("Bidder", min_width=12)
        table.add_column("Amount", justify="right")
        table.add_column("Completion", justify="right")
        table.add_column("Milestones")
        table.add_column("Selected", justify="center")

        for bid in snapshot.bids:
            is_current = (
                snapshot.selected_bid_index == bid.bid_index
                and snapshot.selected_bidder is not None
            )
            if is_current:
                selected = "[bold green]WINNER[/bold green]"
            elif bid.selected:
                selected = "[yellow]superseded[/yellow]"
            else:
                selected = "[dim]-[/dim]"
            table.add_row(
                str(bid.bid_index),
                bid.bidder,
                str(bid.bid_amount),
                str(bid.completion_time),
                ", ".join(str(a) for a in bid.proposed_milestones),
                selected,
            )
        return table

    def _build_dispute_table(self, snapshot: ProjectSnapshot) -> Table:
        table = Table(title="Disputes", header_style="bold cyan", expand=True)
        table.add_column("Id", style="dim", width=5, justify="right")
        table.add_column("Raised by")
        table.add_column("Reason")
        table.add_column("Yes", justify="right")
        table.add_column("No", justify="right")
        table.add_column("Outcome", justify="center")

        for d in snapshot.disputes:
            if not d.resolved:
                outcome = "[bold red]OPEN[/bold red]"
            elif d.outcome:
                outcome = "[green]upheld[/green]"
            else:
                outcome = "[magenta]rejected[/magenta]"
            table.add_row(
                str(d.dispute_id),
                d.disputant,
                d.reason,
                str(d.yes_votes),
                str(d.no_votes),
                outcome,
            )
        return table

    # ------------------------------------------------------------------
    # Standalone print
    # ------------------------------------------------------------------

    def print_snapshot(self, snapshot: ProjectSnapshot) -> None:
        self.console.print(self.render_snapshot(snapshot))

    def print_events(self, events: list[LedgerEvent]) -> None:
        """Print journal events as a table, oldest first."""
        table = Table(title="Event Journal", header_style="bold cyan", expand=True)
        table.add_column("Time", style="dim")
        table.add_column("Kind")
        table.add_column("Project", justify="right")
        table.add_column("Details")
        table.add_column("Hash", style="dim")

        skip = {
            "event_id", "kind", "project_id", "timestamp_utc",
            "previous_entry_hash", "entry_hash",
        }
        for event in events:
            details = ", ".join(
                f"{k}={v}" for k, v in event.model_dump(mode="json").items() if k not in skip
            )
            table.add_row(
                event.timestamp_utc.strftime("%Y-%m-%d %H:%M:%S"),
                event.kind.value,
                str(event.project_id) if event.project_id is not None else "-",
                details,
                event.entry_hash[:12],
            )
        self.console.print(table)

    def print_journal_verification(self, valid: bool) -> None:
        if valid:
            self.console.print("[green]Event journal hash chain is valid.[/green]")
        else:
            self.console.print("[bold red]Event journal hash chain is BROKEN![/bold red]")
