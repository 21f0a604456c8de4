"""Helpers shared by the CLI commands: ledger opening and error reporting."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console

from bidforge.config import settings
from bidforge.core.contract import DesignBidBuildLedger
from bidforge.core.errors import ErrorKind, LedgerError

console = Console()

DEFAULT_LEDGER = str(settings.ledger_path)

# Exit code per failure kind, so scripts can branch without parsing output.
EXIT_CODES: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHORIZED: 3,
    ErrorKind.NOT_FOUND: 4,
    ErrorKind.VALIDATION: 5,
    ErrorKind.INVALID_STATE: 6,
    ErrorKind.TRANSFER_FAILED: 7,
}


def ledger_option() -> str:
    return typer.Option(
        DEFAULT_LEDGER,
        "--ledger",
        "-l",
        help="Path to the ledger SQLite database.",
    )


def caller_option() -> str:
    return typer.Option(
        ...,
        "--as",
        help="Address of the account performing the operation.",
    )


@contextmanager
def open_ledger(ledger_db: str) -> Iterator[DesignBidBuildLedger]:
    """Open the ledger, turning ``LedgerError`` into a red message and exit code."""
    ledger = DesignBidBuildLedger.open(ledger_db)
    try:
        yield ledger
    except LedgerError as exc:
        console.print(f"[bold red]{exc.kind.value}:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_CODES.get(exc.kind, 1))
    finally:
        ledger.close()
