"""Escrow Releaser — pooled custody and per-milestone payment release.

Funds sit in one pooled account.  Deposits are not tied to any project,
so the pool can be drawn down by one project's milestones while another
project's owner believes their deposit is still held.

Release follows checks-effects-interactions ordering:

1. validate (owner, selection, index, unpaid, no open dispute)
2. mark the milestone paid
3. transfer the amount to the selected bidder (last step)

Steps 2 and 3 share one transaction: if the transfer raises, the paid
flag is rolled back with it.  A transfer backend that calls back into
the ledger sees the milestone already paid, which blocks a double payout.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from bidforge.core.errors import LedgerValidationError, TransferFailedError
from bidforge.core.events import EventEmitter
from bidforge.core.guards import require_no_open_dispute, require_owner, require_project
from bidforge.core.store import (
    MAX_AMOUNT,
    BalanceOverflowError,
    InsufficientFundsError,
    LedgerStore,
)
from bidforge.models.events import FundsDeposited, MilestonePaid

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Transfer backends
# ---------------------------------------------------------------------------


@runtime_checkable
class FundsTransfer(Protocol):
    """Protocol for moving released funds out of escrow.

    Any object with a ``transfer(payee, amount)`` method satisfies this
    protocol.  Raising any exception signals that the transfer failed.
    """

    def transfer(self, payee: str, amount: int) -> None:
        ...


class PooledTransfer:
    """Default backend: debits the pooled escrow account, credits the payee.

    Both sides are ledger writes in the same transaction as the release.
    """

    def __init__(self, store: LedgerStore, escrow_account: str) -> None:
        self._store = store
        self._escrow_account = escrow_account

    def transfer(self, payee: str, amount: int) -> None:
        if payee == self._escrow_account:
            raise TransferFailedError(
                f"Refusing to pay {amount} from escrow back into {payee!r}"
            )
        try:
            self._store.debit(self._escrow_account, amount)
            self._store.credit(payee, amount)
        except (InsufficientFundsError, BalanceOverflowError) as exc:
            raise TransferFailedError(
                f"Cannot move {amount} from escrow to {payee!r}: {exc}"
            ) from exc


# ---------------------------------------------------------------------------
# Escrow Releaser
# ---------------------------------------------------------------------------


class EscrowReleaser:
    """Holds the pooled balance and pays milestones to the selected bidder.

    Parameters
    ----------
    store:
        The Ledger Store holding projects and balances.
    emitter:
        The Event Emitter that journals notifications.
    escrow_account:
        Reserved account name for the pooled balance.
    transfer:
        Backend that moves released funds.  Defaults to ``PooledTransfer``.
    """

    def __init__(
        self,
        store: LedgerStore,
        emitter: EventEmitter,
        *,
        escrow_account: str,
        transfer: FundsTransfer | None = None,
    ) -> None:
        self._store = store
        self._emitter = emitter
        self._escrow_account = escrow_account
        self._transfer = transfer or PooledTransfer(store, escrow_account)

    @property
    def escrow_account(self) -> str:
        return self._escrow_account

    def deposit(self, sender: str, amount: int) -> None:
        """Credit *amount* from *sender* to the pooled escrow balance."""
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise LedgerValidationError(
                f"Deposit amount must be a positive integer, got {amount!r}"
            )
        if amount > MAX_AMOUNT:
            raise LedgerValidationError(
                f"Deposit amount exceeds the largest storable amount ({MAX_AMOUNT})"
            )

        with self._store.transaction():
            try:
                self._store.credit(self._escrow_account, amount)
            except BalanceOverflowError as exc:
                raise LedgerValidationError(
                    f"Deposit of {amount} would overflow the escrow pool: {exc}"
                ) from exc
            self._emitter.emit(FundsDeposited(sender=sender, amount=amount))

        logger.info("Escrow credited %d by %s", amount, sender)

    def release_milestone_payment(
        self, caller: str, project_id: int, milestone_index: int
    ) -> int:
        """Pay milestone *milestone_index* of *project_id* to the selected bidder.

        Returns the amount paid.

        Raises
        ------
        NotFoundError
            If the project does not exist.
        UnauthorizedError
            If *caller* is not the project owner.
        LedgerValidationError
            If no bid is selected, the index is out of range, or the
            milestone is already paid.
        InvalidStateError
            If the project has an open dispute.
        TransferFailedError
            If the funds transfer failed; nothing is committed.
        """
        with self._store.transaction():
            project = require_project(self._store, project_id)
            require_owner(project, caller, "release milestone payments")
            if project.selected_bidder is None:
                raise LedgerValidationError(
                    f"Project {project_id} has no selected bidder yet"
                )
            if not 0 <= milestone_index < len(project.milestones):
                raise LedgerValidationError(
                    f"Milestone index {milestone_index} is out of range for project "
                    f"{project_id} ({len(project.milestones)} milestones)"
                )
            if project.milestone_paid[milestone_index]:
                raise LedgerValidationError(
                    f"Milestone {milestone_index} of project {project_id} is already paid"
                )
            require_no_open_dispute(project, "release milestone payments")

            payee = project.selected_bidder
            amount = project.milestones[milestone_index]

            # Effects before interaction: the paid flag is visible to any
            # re-entrant call the transfer makes.
            paid = list(project.milestone_paid)
            paid[milestone_index] = True
            self._store.update_project(project.model_copy(update={"milestone_paid": paid}))

            self._run_transfer(payee, amount)

            self._emitter.emit(
                MilestonePaid(
                    project_id=project_id,
                    milestone_index=milestone_index,
                    payee=payee,
                    amount=amount,
                )
            )

        logger.info(
            "Milestone %d of project %d paid: %d to %s",
            milestone_index, project_id, amount, payee,
        )
        return amount

    def _run_transfer(self, payee: str, amount: int) -> None:
        try:
            self._transfer.transfer(payee, amount)
        except TransferFailedError:
            raise
        except Exception as exc:
            raise TransferFailedError(
                f"Transfer of {amount} to {payee!r} failed: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def escrow_balance(self) -> int:
        return self._store.balance_of(self._escrow_account)

    def balance_of(self, address: str) -> int:
        return self._store.balance_of(address)
