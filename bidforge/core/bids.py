"""Bid Registry — append-only bids against projects that are open."""

from __future__ import annotations

import logging

from bidforge.core.errors import InvalidStateError, LedgerValidationError, NotFoundError
from bidforge.core.events import EventEmitter
from bidforge.core.guards import require_project
from bidforge.core.lifecycle import validate_amounts
from bidforge.core.store import BID_COUNTER, MAX_AMOUNT, LedgerStore
from bidforge.models.events import BidSubmitted
from bidforge.models.project import Bid

logger = logging.getLogger(__name__)


class BidRegistry:
    """Records bids while a project accepts them.

    A bidder may submit any number of bids; each gets the next index in
    the project's bid list and the next global bid id.  The reserved
    escrow account may not bid, since paying it would move no funds.
    """

    def __init__(
        self, store: LedgerStore, emitter: EventEmitter, *, escrow_account: str
    ) -> None:
        self._store = store
        self._emitter = emitter
        self._escrow_account = escrow_account

    def submit_bid(
        self,
        caller: str,
        project_id: int,
        bid_amount: int,
        completion_time: int,
        proposed_milestones: list[int],
    ) -> int:
        """Append a bid to the project.  Returns the new bid's index.

        Raises
        ------
        NotFoundError
            If the project does not exist.
        InvalidStateError
            If the project is no longer accepting bids.
        LedgerValidationError
            If the proposed milestone count differs from the project's,
            an amount is negative or oversized, or *caller* is the
            escrow account.
        """
        proposed_milestones = list(proposed_milestones)

        with self._store.transaction():
            project = require_project(self._store, project_id)
            if not project.active:
                raise InvalidStateError(
                    f"Project {project_id} is closed to bidding"
                )
            if len(proposed_milestones) != len(project.milestones):
                raise LedgerValidationError(
                    f"Bid proposes {len(proposed_milestones)} milestones but project "
                    f"{project_id} has {len(project.milestones)}"
                )
            validate_amounts(proposed_milestones, "proposed_milestones")
            if not 0 <= bid_amount <= MAX_AMOUNT:
                raise LedgerValidationError(
                    f"Bid amount must be between 0 and {MAX_AMOUNT}, got {bid_amount}"
                )
            if caller == self._escrow_account:
                raise LedgerValidationError(
                    f"The escrow account {caller!r} cannot bid on projects"
                )

            bid_index = self._store.count_bids(project_id)
            bid = Bid(
                bid_id=self._store.next_id(BID_COUNTER),
                project_id=project_id,
                bid_index=bid_index,
                bidder=caller,
                bid_amount=bid_amount,
                completion_time=completion_time,
                proposed_milestones=proposed_milestones,
            )
            self._store.insert_bid(bid)
            self._emitter.emit(
                BidSubmitted(
                    project_id=project_id,
                    bid_id=bid.bid_id,
                    bid_index=bid_index,
                    bidder=caller,
                    bid_amount=bid_amount,
                    completion_time=completion_time,
                    proposed_milestones=proposed_milestones,
                )
            )

        logger.info(
            "Bid %d (index %d) submitted on project %d by %s for %d",
            bid.bid_id, bid_index, project_id, caller, bid_amount,
        )
        return bid_index

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def get_bids(self, project_id: int) -> list[Bid]:
        require_project(self._store, project_id)
        return self._store.get_bids(project_id)

    def get_bid(self, project_id: int, bid_index: int) -> Bid:
        bid = self._store.get_bid(project_id, bid_index)
        if bid is None:
            raise NotFoundError(f"Project {project_id} has no bid at index {bid_index}")
        return bid

    def bid_count(self) -> int:
        """Number of bids ever submitted across all projects."""
        return self._store.current_count(BID_COUNTER)
