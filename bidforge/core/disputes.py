"""Dispute Voting Engine — opening disputes and strict-majority resolution.

Dispute axis of the project state machine::

    Undisputed --raise_dispute--> Disputed --vote (strict majority)--> Undisputed

While a project is Disputed, bid selection and milestone release are
refused.  A dispute resolves at the first vote that makes one side's
count strictly exceed the other's; an exact tie stays open with no
quorum or timeout.  Any address may vote once per dispute.
"""

from __future__ import annotations

import logging

from bidforge.config import DisputeRaiserPolicy
from bidforge.core.errors import InvalidStateError, LedgerValidationError, NotFoundError
from bidforge.core.events import EventEmitter
from bidforge.core.guards import require_dispute_raiser, require_project
from bidforge.core.store import DISPUTE_COUNTER, LedgerStore
from bidforge.models.events import DisputeRaised, DisputeResolved
from bidforge.models.project import Dispute

logger = logging.getLogger(__name__)


class DisputeEngine:
    """Opens disputes, tallies votes and clears the dispute flag on resolution.

    Parameters
    ----------
    store:
        The Ledger Store holding projects and disputes.
    emitter:
        The Event Emitter that journals notifications.
    raiser_policy:
        Who may open a dispute.  Defaults to the owner or the selected
        bidder; ``SELECTED_BIDDER_ONLY`` narrows it.
    """

    def __init__(
        self,
        store: LedgerStore,
        emitter: EventEmitter,
        *,
        raiser_policy: DisputeRaiserPolicy = DisputeRaiserPolicy.OWNER_OR_SELECTED_BIDDER,
    ) -> None:
        self._store = store
        self._emitter = emitter
        self._raiser_policy = raiser_policy

    @property
    def raiser_policy(self) -> DisputeRaiserPolicy:
        return self._raiser_policy

    def raise_dispute(self, caller: str, project_id: int, reason: str) -> int:
        """Open a dispute on *project_id*.  Returns the new dispute id.

        Raises
        ------
        NotFoundError
            If the project does not exist.
        UnauthorizedError
            If *caller* is not permitted by the raiser policy.
        InvalidStateError
            If the project already has an open dispute.
        """
        with self._store.transaction():
            project = require_project(self._store, project_id)
            require_dispute_raiser(project, caller, self._raiser_policy)
            if project.dispute_raised:
                raise InvalidStateError(
                    f"Project {project_id} already has an open dispute "
                    f"(dispute {project.open_dispute_id})"
                )

            dispute_id = self._store.next_id(DISPUTE_COUNTER)
            self._store.insert_dispute(
                Dispute(
                    dispute_id=dispute_id,
                    project_id=project_id,
                    disputant=caller,
                    reason=reason,
                )
            )
            self._store.update_project(
                project.model_copy(
                    update={"dispute_raised": True, "open_dispute_id": dispute_id}
                )
            )
            self._emitter.emit(
                DisputeRaised(
                    project_id=project_id,
                    dispute_id=dispute_id,
                    disputant=caller,
                    reason=reason,
                )
            )

        logger.info(
            "Dispute %d raised on project %d by %s", dispute_id, project_id, caller
        )
        return dispute_id

    def vote_on_dispute(self, caller: str, dispute_id: int, vote: bool) -> bool:
        """Cast *caller*'s vote on *dispute_id*.

        Returns ``True`` if this vote resolved the dispute.

        Raises
        ------
        NotFoundError
            If the dispute does not exist.
        InvalidStateError
            If the dispute is already resolved.
        LedgerValidationError
            If *caller* has already voted on this dispute.
        """
        with self._store.transaction():
            dispute = self.get_dispute(dispute_id)
            if dispute.resolved:
                raise InvalidStateError(f"Dispute {dispute_id} is already resolved")
            if dispute.has_voted(caller):
                raise LedgerValidationError(
                    f"{caller!r} has already voted on dispute {dispute_id}"
                )

            tallied = dispute.model_copy(
                update={
                    "voters": dispute.voters | {caller},
                    "yes_votes": dispute.yes_votes + (1 if vote else 0),
                    "no_votes": dispute.no_votes + (0 if vote else 1),
                }
            )

            outcome = tallied.leading_outcome
            if outcome is None:
                self._store.update_dispute(tallied)
                logger.warning(
                    "Dispute %d tied at %d-%d; remains open",
                    dispute_id, tallied.yes_votes, tallied.no_votes,
                )
                return False

            self._store.update_dispute(
                tallied.model_copy(update={"resolved": True, "outcome": outcome})
            )
            project = require_project(self._store, dispute.project_id)
            self._store.update_project(
                project.model_copy(
                    update={"dispute_raised": False, "open_dispute_id": None}
                )
            )
            self._emitter.emit(
                DisputeResolved(
                    project_id=dispute.project_id,
                    dispute_id=dispute_id,
                    result=outcome,
                    yes_votes=tallied.yes_votes,
                    no_votes=tallied.no_votes,
                )
            )

        logger.info(
            "Dispute %d on project %d resolved %s (%d yes / %d no)",
            dispute_id, dispute.project_id, outcome, tallied.yes_votes, tallied.no_votes,
        )
        return True

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def get_dispute(self, dispute_id: int) -> Dispute:
        dispute = self._store.get_dispute(dispute_id)
        if dispute is None:
            raise NotFoundError(f"Dispute {dispute_id} does not exist")
        return dispute

    def get_disputes_for_project(self, project_id: int) -> list[Dispute]:
        require_project(self._store, project_id)
        return self._store.get_disputes_for_project(project_id)

    def dispute_count(self) -> int:
        return self._store.current_count(DISPUTE_COUNTER)
