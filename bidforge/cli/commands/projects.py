"""``bidforge post`` / ``bid`` / ``select`` — project and bidding commands."""

from __future__ import annotations

from typing import List

import typer
from rich.panel import Panel

from bidforge.cli.commands._common import caller_option, console, ledger_option, open_ledger


def post_cmd(
    description: str = typer.Argument(..., help="What the project delivers."),
    milestones: List[int] = typer.Option(
        ...,
        "--milestone",
        "-m",
        help="Milestone payment amount, in order. Repeat for each tranche.",
    ),
    budget: int = typer.Option(0, "--budget", "-b", help="Declared project budget."),
    deadline: int = typer.Option(
        0, "--deadline", "-d", help="Declared deadline (informational only)."
    ),
    owner: str = caller_option(),
    ledger_db: str = ledger_option(),
) -> None:
    """Post a new project open for bidding and print its id."""
    with open_ledger(ledger_db) as ledger:
        project_id = ledger.post_project(owner, description, budget, deadline, milestones)

    console.print(
        Panel(
            "\n".join([
                "[bold green]Project posted![/bold green]",
                "",
                f"[bold]Project ID:[/bold]  {project_id}",
                f"[bold]Owner:[/bold]       {owner}",
                f"[bold]Milestones:[/bold]  {', '.join(str(m) for m in milestones)}",
                "",
                "[dim]Bidding is open.[/dim]",
            ]),
            title="[bold]bidforge[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
    # Print the id plainly for scripting
    console.print(f"[bold]{project_id}[/bold]")


def bid_cmd(
    project_id: int = typer.Argument(..., help="Project to bid on."),
    amount: int = typer.Option(..., "--amount", help="Total bid price."),
    completion_time: int = typer.Option(
        ..., "--completion", help="Proposed completion time."
    ),
    milestones: List[int] = typer.Option(
        ...,
        "--milestone",
        "-m",
        help="Proposed milestone amount. Repeat once per project milestone.",
    ),
    bidder: str = caller_option(),
    ledger_db: str = ledger_option(),
) -> None:
    """Submit a bid on an open project and print its index."""
    with open_ledger(ledger_db) as ledger:
        bid_index = ledger.submit_bid(bidder, project_id, amount, completion_time, milestones)

    console.print(
        f"[green]Bid {bid_index} submitted on project {project_id} by {bidder}.[/green]"
    )
    console.print(f"[bold]{bid_index}[/bold]")


def select_cmd(
    project_id: int = typer.Argument(..., help="Project whose bid to select."),
    bid_index: int = typer.Argument(..., help="Index of the winning bid."),
    owner: str = caller_option(),
    ledger_db: str = ledger_option(),
) -> None:
    """Select the winning bid and close bidding (owner only)."""
    with open_ledger(ledger_db) as ledger:
        ledger.select_bid(owner, project_id, bid_index)
        bidder = ledger.get_bid(project_id, bid_index).bidder

    console.print(
        f"[green]Bid {bid_index} by {bidder} selected; "
        f"project {project_id} is closed to bidding.[/green]"
    )
