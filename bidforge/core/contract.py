"""DesignBidBuildLedger — the central coordinator for the contracting workflow.

Wires the LedgerStore, EventEmitter, ProjectLifecycle, BidRegistry,
EscrowReleaser and DisputeEngine together and exposes the six core
operations plus the read-only queries a presentation layer needs.
"""

from __future__ import annotations

import logging
from pathlib import Path

from bidforge.config import LedgerSettings
from bidforge.core.bids import BidRegistry
from bidforge.core.disputes import DisputeEngine
from bidforge.core.escrow import EscrowReleaser, FundsTransfer
from bidforge.core.events import EventEmitter, EventHandler
from bidforge.core.lifecycle import ProjectLifecycle
from bidforge.core.store import LedgerStore
from bidforge.models.events import EventKind, LedgerEvent
from bidforge.models.project import Bid, Dispute, Project

logger = logging.getLogger(__name__)


class DesignBidBuildLedger:
    """Design-Bid-Build ledger: projects, bids, escrowed milestones, disputes.

    Parameters
    ----------
    settings:
        Ledger settings.  Uses environment-driven defaults if not provided.
    store:
        An existing store to operate on.  Opened from
        ``settings.ledger_path`` if not provided.
    transfer:
        Funds-transfer backend for milestone release.  Defaults to moving
        value between ledger accounts.
    """

    def __init__(
        self,
        settings: LedgerSettings | None = None,
        *,
        store: LedgerStore | None = None,
        transfer: FundsTransfer | None = None,
    ) -> None:
        self.settings = settings or LedgerSettings()

        # Core subsystems
        self.store = store or LedgerStore(self.settings.ledger_path)
        self.emitter = EventEmitter(self.store)
        self.lifecycle = ProjectLifecycle(self.store, self.emitter)
        self.bids = BidRegistry(
            self.store,
            self.emitter,
            escrow_account=self.settings.escrow_account,
        )
        self.escrow = EscrowReleaser(
            self.store,
            self.emitter,
            escrow_account=self.settings.escrow_account,
            transfer=transfer,
        )
        self.disputes = DisputeEngine(
            self.store,
            self.emitter,
            raiser_policy=self.settings.dispute_raisers,
        )
        logger.debug(
            "Ledger opened at %s (dispute raisers: %s)",
            self.store.db_path,
            self.settings.dispute_raisers.value,
        )

    @classmethod
    def open(cls, ledger_path: Path | str, **overrides) -> DesignBidBuildLedger:
        """Open (or create) a ledger at *ledger_path* with optional setting overrides."""
        settings = LedgerSettings(ledger_path=ledger_path, **overrides)
        return cls(settings, store=LedgerStore(ledger_path))

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def post_project(
        self,
        owner: str,
        description: str,
        budget: int,
        deadline: int,
        milestones: list[int],
    ) -> int:
        return self.lifecycle.post_project(owner, description, budget, deadline, milestones)

    def submit_bid(
        self,
        caller: str,
        project_id: int,
        bid_amount: int,
        completion_time: int,
        proposed_milestones: list[int],
    ) -> int:
        return self.bids.submit_bid(
            caller, project_id, bid_amount, completion_time, proposed_milestones
        )

    def select_bid(self, caller: str, project_id: int, bid_index: int) -> None:
        self.lifecycle.select_bid(caller, project_id, bid_index)

    def release_milestone_payment(
        self, caller: str, project_id: int, milestone_index: int
    ) -> int:
        return self.escrow.release_milestone_payment(caller, project_id, milestone_index)

    def raise_dispute(self, caller: str, project_id: int, reason: str) -> int:
        return self.disputes.raise_dispute(caller, project_id, reason)

    def vote_on_dispute(self, caller: str, dispute_id: int, vote: bool) -> bool:
        return self.disputes.vote_on_dispute(caller, dispute_id, vote)

    def deposit(self, sender: str, amount: int) -> None:
        self.escrow.deposit(sender, amount)

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def get_project(self, project_id: int) -> Project:
        return self.lifecycle.get_project(project_id)

    def list_projects(self) -> list[Project]:
        return self.lifecycle.list_projects()

    def project_count(self) -> int:
        return self.lifecycle.project_count()

    def get_bids(self, project_id: int) -> list[Bid]:
        return self.bids.get_bids(project_id)

    def get_bid(self, project_id: int, bid_index: int) -> Bid:
        return self.bids.get_bid(project_id, bid_index)

    def get_dispute(self, dispute_id: int) -> Dispute:
        return self.disputes.get_dispute(dispute_id)

    def get_disputes_for_project(self, project_id: int) -> list[Dispute]:
        return self.disputes.get_disputes_for_project(project_id)

    def dispute_count(self) -> int:
        return self.disputes.dispute_count()

    def balance_of(self, address: str) -> int:
        return self.escrow.balance_of(address)

    def escrow_balance(self) -> int:
        return self.escrow.escrow_balance()

    def get_events(
        self,
        *,
        project_id: int | None = None,
        kind: EventKind | None = None,
    ) -> list[LedgerEvent]:
        return self.store.get_events(project_id=project_id, kind=kind)

    def subscribe(self, handler: EventHandler, kind: EventKind | None = None) -> None:
        self.emitter.subscribe(handler, kind)

    def verify_journal(self) -> bool:
        return self.emitter.verify_journal()

    def close(self) -> None:
        self.store.close()
