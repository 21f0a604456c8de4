"""Project Lifecycle Manager — posting projects and selecting the winning bid.

Bidding axis of the project state machine::

    Open --select_bid--> Closed

Re-selection on a Closed project is allowed and overwrites the selected
bidder; the previously chosen bid keeps its ``selected`` flag.
"""

from __future__ import annotations

import logging

from bidforge.core.errors import LedgerValidationError, NotFoundError
from bidforge.core.events import EventEmitter
from bidforge.core.guards import require_no_open_dispute, require_owner, require_project
from bidforge.core.store import MAX_AMOUNT, PROJECT_COUNTER, LedgerStore
from bidforge.models.events import BidSelected, ProjectPosted
from bidforge.models.project import Project

logger = logging.getLogger(__name__)


def validate_amounts(amounts: list[int], what: str) -> None:
    """Reject non-integer, negative or oversized amounts in a milestone list."""
    for i, amount in enumerate(amounts):
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise LedgerValidationError(
                f"{what}[{i}] must be an integer amount, got {amount!r}"
            )
        if amount < 0:
            raise LedgerValidationError(f"{what}[{i}] must not be negative, got {amount}")
        if amount > MAX_AMOUNT:
            raise LedgerValidationError(
                f"{what}[{i}] exceeds the largest storable amount ({MAX_AMOUNT}), got {amount}"
            )


class ProjectLifecycle:
    """Creates projects and closes bidding by selecting a bid.

    Parameters
    ----------
    store:
        The Ledger Store holding every entity.
    emitter:
        The Event Emitter that journals notifications.
    """

    def __init__(self, store: LedgerStore, emitter: EventEmitter) -> None:
        self._store = store
        self._emitter = emitter

    def post_project(
        self,
        owner: str,
        description: str,
        budget: int,
        deadline: int,
        milestones: list[int],
    ) -> int:
        """Post a new project open for bidding.  Returns the project id.

        Raises
        ------
        LedgerValidationError
            If *milestones* is empty or holds a negative or oversized
            amount, or the budget is out of range.
        """
        milestones = list(milestones)
        if not milestones:
            raise LedgerValidationError("A project needs at least one milestone")
        validate_amounts(milestones, "milestones")
        if not 0 <= budget <= MAX_AMOUNT:
            raise LedgerValidationError(
                f"Budget must be between 0 and {MAX_AMOUNT}, got {budget}"
            )

        with self._store.transaction():
            project_id = self._store.next_id(PROJECT_COUNTER)
            project = Project(
                project_id=project_id,
                owner=owner,
                description=description,
                budget=budget,
                deadline=deadline,
                milestones=milestones,
                milestone_paid=[False] * len(milestones),
            )
            self._store.insert_project(project)
            self._emitter.emit(
                ProjectPosted(
                    project_id=project_id,
                    owner=owner,
                    description=description,
                    budget=budget,
                    deadline=deadline,
                    milestones=milestones,
                )
            )

        logger.info(
            "Project %d posted by %s with %d milestones (budget %d)",
            project_id, owner, len(milestones), budget,
        )
        return project_id

    def select_bid(self, caller: str, project_id: int, bid_index: int) -> None:
        """Select the bid at *bid_index* and close bidding on the project.

        Raises
        ------
        NotFoundError
            If the project or the bid does not exist.
        UnauthorizedError
            If *caller* is not the project owner.
        InvalidStateError
            If the project has an open dispute.
        """
        with self._store.transaction():
            project = require_project(self._store, project_id)
            bid = self._store.get_bid(project_id, bid_index)
            if bid is None:
                raise NotFoundError(
                    f"Project {project_id} has no bid at index {bid_index}"
                )
            require_owner(project, caller, "select a bid")
            require_no_open_dispute(project, "select a bid")

            if project.selected_bidder is not None:
                logger.warning(
                    "Project %d already selected bid %d (%s); overwriting with bid %d (%s)",
                    project_id,
                    project.selected_bid_index,
                    project.selected_bidder,
                    bid_index,
                    bid.bidder,
                )

            self._store.update_bid(bid.model_copy(update={"selected": True}))
            self._store.update_project(
                project.model_copy(
                    update={
                        "selected_bidder": bid.bidder,
                        "active": False,
                        "selected_bid_index": bid_index,
                    }
                )
            )
            self._emitter.emit(
                BidSelected(
                    project_id=project_id,
                    bid_index=bid_index,
                    bidder=bid.bidder,
                )
            )

        logger.info(
            "Project %d closed: bid %d by %s selected", project_id, bid_index, bid.bidder
        )

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def get_project(self, project_id: int) -> Project:
        return require_project(self._store, project_id)

    def list_projects(self) -> list[Project]:
        return self._store.list_projects()

    def project_count(self) -> int:
        """Number of projects ever posted (also the highest project id)."""
        return self._store.current_count(PROJECT_COUNTER)
