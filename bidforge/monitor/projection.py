"""ProjectProjection — pure read-only view over the ledger for presentation.

The projection never stores state.  Every ``snapshot()`` re-reads the
store, so what it shows is exactly what has been committed.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from bidforge.core.contract import DesignBidBuildLedger
from bidforge.core.events import JournalIntegrityError
from bidforge.models.project import Bid, BiddingState, Dispute, DisputeState


class MilestoneStatus(BaseModel):
    """Point-in-time status of one payment tranche."""

    model_config = ConfigDict(frozen=True)

    index: int
    amount: int
    paid: bool
    proposed_amount: int | None = None  # from the selected bid, if any


class ProjectSnapshot(BaseModel):
    """A frozen, point-in-time snapshot of one project.

    Computed fresh on every ``snapshot()`` call; never persisted.
    """

    model_config = ConfigDict(frozen=True)

    project_id: int
    owner: str
    description: str
    budget: int
    deadline: int
    bidding_state: BiddingState
    dispute_state: DisputeState
    selected_bidder: str | None = None
    selected_bid_index: int | None = None
    milestones: list[MilestoneStatus] = []
    bids: list[Bid] = []
    disputes: list[Dispute] = []
    escrow_balance: int = 0
    journal_valid: bool = True
    event_count: int = 0
    last_updated: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def paid_total(self) -> int:
        return sum(m.amount for m in self.milestones if m.paid)

    @property
    def unpaid_total(self) -> int:
        return sum(m.amount for m in self.milestones if not m.paid)

    @property
    def paid_count(self) -> int:
        return sum(1 for m in self.milestones if m.paid)

    @property
    def open_dispute(self) -> Dispute | None:
        return next((d for d in self.disputes if not d.resolved), None)

    @property
    def underfunded(self) -> bool:
        """Whether the shared pool cannot cover this project's unpaid milestones."""
        return self.selected_bidder is not None and self.escrow_balance < self.unpaid_total


class ProjectProjection:
    """Read-only projection of projects for display.

    Parameters
    ----------
    ledger:
        The ledger to project from.
    """

    def __init__(self, ledger: DesignBidBuildLedger) -> None:
        self._ledger = ledger

    def snapshot(self, project_id: int) -> ProjectSnapshot:
        """Produce a point-in-time snapshot of *project_id*.

        Raises ``NotFoundError`` if the project does not exist.
        """
        project = self._ledger.get_project(project_id)
        bids = self._ledger.get_bids(project_id)
        disputes = self._ledger.get_disputes_for_project(project_id)

        selected_bid = None
        if project.selected_bidder is not None:
            selected_bid = next(
                (b for b in bids if b.bid_index == project.selected_bid_index), None
            )

        milestones = [
            MilestoneStatus(
                index=i,
                amount=amount,
                paid=paid,
                proposed_amount=(
                    selected_bid.proposed_milestones[i] if selected_bid else None
                ),
            )
            for i, (amount, paid) in enumerate(
                zip(project.milestones, project.milestone_paid)
            )
        ]

        return ProjectSnapshot(
            project_id=project.project_id,
            owner=project.owner,
            description=project.description,
            budget=project.budget,
            deadline=project.deadline,
            bidding_state=project.bidding_state,
            dispute_state=project.dispute_state,
            selected_bidder=project.selected_bidder,
            selected_bid_index=(
                project.selected_bid_index if project.selected_bidder is not None else None
            ),
            milestones=milestones,
            bids=bids,
            disputes=disputes,
            escrow_balance=self._ledger.escrow_balance(),
            journal_valid=self._check_journal_valid(),
            event_count=len(self._ledger.get_events(project_id=project_id)),
        )

    def snapshot_all(self) -> list[ProjectSnapshot]:
        return [self.snapshot(p.project_id) for p in self._ledger.list_projects()]

    def _check_journal_valid(self) -> bool:
        try:
            return self._ledger.verify_journal()
        except JournalIntegrityError:
            return False
