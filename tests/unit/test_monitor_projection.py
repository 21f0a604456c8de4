"""Unit tests for the ProjectProjection — snapshots computed from the ledger."""

from __future__ import annotations

import pytest

from bidforge.core.contract import DesignBidBuildLedger
from bidforge.core.errors import NotFoundError
from bidforge.models.project import BiddingState, DisputeState
from bidforge.monitor.projection import ProjectProjection

OWNER = "0xowner"
ALICE = "0xalice"


class TestSnapshot:
    def test_open_project(self, ledger: DesignBidBuildLedger, project_id: int):
        snap = ProjectProjection(ledger).snapshot(project_id)
        assert snap.bidding_state == BiddingState.OPEN
        assert snap.dispute_state == DisputeState.UNDISPUTED
        assert snap.selected_bidder is None
        assert snap.selected_bid_index is None
        assert [m.amount for m in snap.milestones] == [100, 200, 300]
        assert all(m.proposed_amount is None for m in snap.milestones)
        assert snap.underfunded is False
        assert snap.event_count == 1

    def test_awarded_project(self, ledger: DesignBidBuildLedger, awarded_project: int):
        ledger.release_milestone_payment(OWNER, awarded_project, 0)
        snap = ProjectProjection(ledger).snapshot(awarded_project)

        assert snap.bidding_state == BiddingState.CLOSED
        assert snap.selected_bidder == ALICE
        assert snap.selected_bid_index == 0
        assert [m.proposed_amount for m in snap.milestones] == [100, 200, 290]
        assert snap.paid_total == 100
        assert snap.unpaid_total == 500
        assert snap.paid_count == 1
        assert snap.escrow_balance == 500
        assert snap.underfunded is False
        assert len(snap.bids) == 2

    def test_underfunded_pool(self, ledger: DesignBidBuildLedger, project_id: int):
        ledger.submit_bid(ALICE, project_id, 600, 1, [100, 200, 300])
        ledger.select_bid(OWNER, project_id, 0)
        ledger.deposit(OWNER, 100)
        assert ProjectProjection(ledger).snapshot(project_id).underfunded is True

    def test_open_dispute_surfaced(self, ledger: DesignBidBuildLedger, awarded_project: int):
        did = ledger.raise_dispute(ALICE, awarded_project, "Rework")
        snap = ProjectProjection(ledger).snapshot(awarded_project)
        assert snap.dispute_state == DisputeState.DISPUTED
        assert snap.open_dispute is not None
        assert snap.open_dispute.dispute_id == did

    def test_journal_valid_flag(self, ledger: DesignBidBuildLedger, project_id: int):
        assert ProjectProjection(ledger).snapshot(project_id).journal_valid is True

    def test_missing_project(self, ledger: DesignBidBuildLedger):
        with pytest.raises(NotFoundError):
            ProjectProjection(ledger).snapshot(3)

    def test_snapshot_all(self, ledger: DesignBidBuildLedger, project_id: int):
        ledger.post_project(OWNER, "Second", 5, 0, [5])
        snaps = ProjectProjection(ledger).snapshot_all()
        assert [s.project_id for s in snaps] == [project_id, 2]

    def test_snapshot_is_not_cached(self, ledger: DesignBidBuildLedger, awarded_project: int):
        projection = ProjectProjection(ledger)
        before = projection.snapshot(awarded_project)
        ledger.release_milestone_payment(OWNER, awarded_project, 2)
        after = projection.snapshot(awarded_project)
        assert before.paid_count == 0
        assert after.paid_count == 1
