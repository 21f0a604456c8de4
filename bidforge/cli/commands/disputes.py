"""``bidforge dispute`` / ``vote`` — raising and settling disputes."""

from __future__ import annotations

from enum import Enum

import typer

from bidforge.cli.commands._common import caller_option, console, ledger_option, open_ledger


class VoteChoice(str, Enum):
    YES = "yes"
    NO = "no"


def dispute_cmd(
    project_id: int = typer.Argument(..., help="Project in dispute."),
    reason: str = typer.Argument(..., help="Why the dispute is raised."),
    caller: str = caller_option(),
    ledger_db: str = ledger_option(),
) -> None:
    """Open a dispute, freezing bid selection and payments, and print its id."""
    with open_ledger(ledger_db) as ledger:
        dispute_id = ledger.raise_dispute(caller, project_id, reason)

    console.print(
        f"[bold yellow]Dispute {dispute_id} raised on project {project_id}.[/bold yellow] "
        "Selection and payments are frozen until it resolves."
    )
    console.print(f"[bold]{dispute_id}[/bold]")


def vote_cmd(
    dispute_id: int = typer.Argument(..., help="Dispute to vote on."),
    choice: VoteChoice = typer.Argument(..., help="yes or no."),
    voter: str = caller_option(),
    ledger_db: str = ledger_option(),
) -> None:
    """Cast one vote on an open dispute."""
    with open_ledger(ledger_db) as ledger:
        resolved = ledger.vote_on_dispute(voter, dispute_id, choice == VoteChoice.YES)
        dispute = ledger.get_dispute(dispute_id)

    console.print(
        f"Vote recorded: {dispute.yes_votes} yes / {dispute.no_votes} no."
    )
    if resolved:
        verdict = "upheld" if dispute.outcome else "rejected"
        console.print(
            f"[bold green]Dispute {dispute_id} resolved ({verdict}); "
            f"project {dispute.project_id} is unfrozen.[/bold green]"
        )
