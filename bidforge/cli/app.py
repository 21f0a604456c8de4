"""Main Typer application — imports and registers all CLI commands.

Entry point: ``bidforge`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging
import sys

import typer
from rich.console import Console
from rich.logging import RichHandler

from bidforge.cli.commands.disputes import dispute_cmd, vote_cmd
from bidforge.cli.commands.funds import deposit_cmd, release_cmd
from bidforge.cli.commands.inspect import events_cmd, show_cmd, verify_cmd
from bidforge.cli.commands.projects import bid_cmd, post_cmd, select_cmd
from bidforge.config import LedgerSettings, settings

app = typer.Typer(
    name="bidforge",
    help="bidforge: Design-Bid-Build contracting ledger with escrowed milestones.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


def build_log_handler(config: LedgerSettings) -> logging.Handler:
    """Rich output for interactive use; plain timestamped lines in production."""
    if config.is_production:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        return handler
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    return handler


@app.callback()
def configure(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log at DEBUG level."
    ),
) -> None:
    """Configure logging for every subcommand."""
    logging.basicConfig(
        level="DEBUG" if verbose else settings.log_level.upper(),
        handlers=[build_log_handler(settings)],
        force=True,
    )


# Register subcommands
app.command(name="post", help="Post a new project with milestone payments.")(post_cmd)
app.command(name="bid", help="Submit a bid on an open project.")(bid_cmd)
app.command(name="select", help="Select the winning bid (owner only).")(select_cmd)
app.command(name="deposit", help="Credit the pooled escrow balance.")(deposit_cmd)
app.command(name="release", help="Release a milestone payment (owner only).")(release_cmd)
app.command(name="dispute", help="Raise a dispute on a project.")(dispute_cmd)
app.command(name="vote", help="Vote on an open dispute.")(vote_cmd)
app.command(name="show", help="Show project state.")(show_cmd)
app.command(name="events", help="Print the notification journal.")(events_cmd)
app.command(name="verify", help="Verify the journal hash chain.")(verify_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
