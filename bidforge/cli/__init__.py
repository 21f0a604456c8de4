"""bidforge CLI — Typer-based command-line interface.

Provides the ``bidforge`` command with subcommands for posting projects,
bidding, selecting a contractor, funding escrow, releasing milestones,
raising and voting on disputes, and inspecting the ledger.

All output uses Rich for formatted terminal display.
"""
