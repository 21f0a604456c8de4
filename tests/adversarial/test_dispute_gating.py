"""Adversarial tests — bypassing the dispute freeze and the role checks.

An open dispute must freeze bid selection and milestone release for its
project only.  Outsiders must not be able to select, release or raise.
"""

from __future__ import annotations

import pytest

from bidforge.core.contract import DesignBidBuildLedger
from bidforge.core.errors import InvalidStateError, UnauthorizedError

OWNER = "0xowner"
ALICE = "0xalice"
BOB = "0xbob"
MALLORY = "0xmallory"


class TestDisputeFreeze:
    def test_every_milestone_frozen(self, ledger: DesignBidBuildLedger, awarded_project: int):
        ledger.raise_dispute(OWNER, awarded_project, "Freeze")
        for index in range(3):
            with pytest.raises(InvalidStateError):
                ledger.release_milestone_payment(OWNER, awarded_project, index)
        assert ledger.balance_of(ALICE) == 0

    def test_freeze_is_per_project(self, ledger: DesignBidBuildLedger, awarded_project: int):
        other = ledger.post_project(OWNER, "Annex", 50, 0, [50])
        ledger.submit_bid(BOB, other, 50, 1, [50])
        ledger.select_bid(OWNER, other, 0)

        ledger.raise_dispute(ALICE, awarded_project, "Frozen here only")
        assert ledger.release_milestone_payment(OWNER, other, 0) == 50
        assert ledger.balance_of(BOB) == 50

    def test_reselection_frozen_during_dispute(
        self, ledger: DesignBidBuildLedger, awarded_project: int
    ):
        ledger.raise_dispute(ALICE, awarded_project, "Keep contractor")
        with pytest.raises(InvalidStateError):
            ledger.select_bid(OWNER, awarded_project, 1)
        assert ledger.get_project(awarded_project).selected_bidder == ALICE

    def test_vote_flood_cannot_reopen_resolved(
        self, ledger: DesignBidBuildLedger, awarded_project: int
    ):
        did = ledger.raise_dispute(ALICE, awarded_project, "Quick")
        ledger.vote_on_dispute(MALLORY, did, False)
        for i in range(5):
            with pytest.raises(InvalidStateError):
                ledger.vote_on_dispute(f"0xsybil{i}", did, True)
        dispute = ledger.get_dispute(did)
        assert (dispute.yes_votes, dispute.no_votes) == (0, 1)
        assert dispute.outcome is False


class TestRoleBypass:
    def test_outsider_cannot_select(self, ledger: DesignBidBuildLedger, project_id: int):
        ledger.submit_bid(MALLORY, project_id, 1, 1, [1, 1, 1])
        with pytest.raises(UnauthorizedError):
            ledger.select_bid(MALLORY, project_id, 0)

    def test_outsider_cannot_release(self, ledger: DesignBidBuildLedger, awarded_project: int):
        with pytest.raises(UnauthorizedError):
            ledger.release_milestone_payment(MALLORY, awarded_project, 0)

    def test_selected_bidder_cannot_release_to_self(
        self, ledger: DesignBidBuildLedger, awarded_project: int
    ):
        with pytest.raises(UnauthorizedError):
            ledger.release_milestone_payment(ALICE, awarded_project, 0)

    def test_outsider_cannot_raise_dispute(
        self, ledger: DesignBidBuildLedger, awarded_project: int
    ):
        with pytest.raises(UnauthorizedError):
            ledger.raise_dispute(MALLORY, awarded_project, "Griefing")
        assert ledger.dispute_count() == 0

    def test_unauthorized_checked_before_dispute_state(
        self, ledger: DesignBidBuildLedger, awarded_project: int
    ):
        ledger.raise_dispute(OWNER, awarded_project, "Open")
        with pytest.raises(UnauthorizedError):
            ledger.release_milestone_payment(MALLORY, awarded_project, 0)
        with pytest.raises(UnauthorizedError):
            ledger.select_bid(MALLORY, awarded_project, 0)
