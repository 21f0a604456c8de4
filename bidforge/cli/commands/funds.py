"""``bidforge deposit`` / ``release`` — escrow funding and milestone payment."""

from __future__ import annotations

import typer

from bidforge.cli.commands._common import caller_option, console, ledger_option, open_ledger


def deposit_cmd(
    amount: int = typer.Argument(..., help="Amount to credit to the escrow pool."),
    sender: str = caller_option(),
    ledger_db: str = ledger_option(),
) -> None:
    """Credit the pooled escrow balance."""
    with open_ledger(ledger_db) as ledger:
        ledger.deposit(sender, amount)
        balance = ledger.escrow_balance()

    console.print(f"[green]Deposited {amount} from {sender}.[/green] Escrow pool: {balance}")


def release_cmd(
    project_id: int = typer.Argument(..., help="Project to pay out."),
    milestone_index: int = typer.Argument(..., help="Index of the milestone to release."),
    owner: str = caller_option(),
    ledger_db: str = ledger_option(),
) -> None:
    """Release one milestone payment to the selected bidder (owner only)."""
    with open_ledger(ledger_db) as ledger:
        amount = ledger.release_milestone_payment(owner, project_id, milestone_index)
        project = ledger.get_project(project_id)

    paid = sum(project.milestone_paid)
    console.print(
        f"[green]Milestone {milestone_index} of project {project_id} released: "
        f"{amount} to {project.selected_bidder}.[/green] "
        f"({paid}/{len(project.milestones)} paid)"
    )
