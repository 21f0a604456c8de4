"""Project, bid and dispute entity models.

All entities are frozen.  A state change is a ``model_copy(update=...)``
written back through the ``LedgerStore`` inside a transaction, so an
operation that fails part-way leaves the stored entity untouched.

Lifecycle per project is two orthogonal axes:

- Open / Closed       (``active``; closed once a bid is selected)
- Undisputed / Disputed (``dispute_raised``; toggles any number of times)

There is no terminal state, even when every milestone is paid.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BiddingState(str, Enum):
    """Bidding axis of the project state machine."""

    OPEN = "open"
    CLOSED = "closed"


class DisputeState(str, Enum):
    """Dispute axis of the project state machine."""

    UNDISPUTED = "undisputed"
    DISPUTED = "disputed"


class Project(BaseModel):
    """A posted unit of work with ordered milestone payments.

    ``deadline`` is descriptive metadata only; no operation reads it.
    """

    model_config = ConfigDict(frozen=True)

    project_id: int
    owner: str
    description: str
    budget: int
    deadline: int  # informational, never enforced
    active: bool = True
    selected_bidder: str | None = None
    milestones: list[int]
    milestone_paid: list[bool] = []
    dispute_raised: bool = False
    selected_bid_index: int = 0  # meaningless until a bid is selected
    open_dispute_id: int | None = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @model_validator(mode="after")
    def _check_milestone_shape(self) -> Project:
        if not self.milestones:
            raise ValueError("A project needs at least one milestone")
        if len(self.milestone_paid) != len(self.milestones):
            raise ValueError(
                f"milestone_paid has {len(self.milestone_paid)} flags for "
                f"{len(self.milestones)} milestones"
            )
        return self

    @property
    def bidding_state(self) -> BiddingState:
        return BiddingState.OPEN if self.active else BiddingState.CLOSED

    @property
    def dispute_state(self) -> DisputeState:
        return DisputeState.DISPUTED if self.dispute_raised else DisputeState.UNDISPUTED

    @property
    def paid_total(self) -> int:
        """Sum of milestone amounts already released."""
        return sum(
            amount for amount, paid in zip(self.milestones, self.milestone_paid) if paid
        )

    @property
    def unpaid_total(self) -> int:
        """Sum of milestone amounts still held back."""
        return sum(self.milestones) - self.paid_total

    @property
    def all_milestones_paid(self) -> bool:
        return all(self.milestone_paid)


class Bid(BaseModel):
    """A contractor's price, timeline and milestone breakdown for a project."""

    model_config = ConfigDict(frozen=True)

    bid_id: int
    project_id: int
    bid_index: int
    bidder: str
    bid_amount: int
    completion_time: int
    proposed_milestones: list[int]
    selected: bool = False
    submitted_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class Dispute(BaseModel):
    """A disagreement on a project, settled by a strict-majority vote.

    The voter set belongs to the dispute and is only ever queried by
    membership.  ``outcome`` stays ``None`` while the vote is tied.
    """

    model_config = ConfigDict(frozen=True)

    dispute_id: int
    project_id: int
    disputant: str
    reason: str
    voters: frozenset[str] = frozenset()
    yes_votes: int = 0
    no_votes: int = 0
    resolved: bool = False
    outcome: bool | None = None
    raised_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def has_voted(self, address: str) -> bool:
        return address in self.voters

    @property
    def leading_outcome(self) -> bool | None:
        """``True``/``False`` when one side strictly leads, ``None`` on a tie."""
        if self.yes_votes > self.no_votes:
            return True
        if self.no_votes > self.yes_votes:
            return False
        return None
