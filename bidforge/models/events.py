"""Ledger notifications (the off-chain indexer contract).

Every committed operation emits exactly one notification.  Notifications
are frozen Pydantic models appended to a hash-chained journal; an indexer
can rebuild the full history of every project from the journal alone.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    """Notification types emitted by the ledger."""

    PROJECT_POSTED = "project_posted"
    BID_SUBMITTED = "bid_submitted"
    BID_SELECTED = "bid_selected"
    MILESTONE_PAID = "milestone_paid"
    DISPUTE_RAISED = "dispute_raised"
    DISPUTE_RESOLVED = "dispute_resolved"
    FUNDS_DEPOSITED = "funds_deposited"


class LedgerEvent(BaseModel):
    """Fields shared by every notification.

    ``previous_entry_hash`` and ``entry_hash`` are filled in by the
    ``EventEmitter`` when the event is sealed into the journal.
    """

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    kind: EventKind
    project_id: int | None = None
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    previous_entry_hash: str = ""
    entry_hash: str = ""


class ProjectPosted(LedgerEvent):
    kind: EventKind = EventKind.PROJECT_POSTED
    project_id: int
    owner: str
    description: str
    budget: int
    deadline: int
    milestones: list[int]


class BidSubmitted(LedgerEvent):
    kind: EventKind = EventKind.BID_SUBMITTED
    project_id: int
    bid_id: int
    bid_index: int
    bidder: str
    bid_amount: int
    completion_time: int
    proposed_milestones: list[int]


class BidSelected(LedgerEvent):
    kind: EventKind = EventKind.BID_SELECTED
    project_id: int
    bid_index: int
    bidder: str


class MilestonePaid(LedgerEvent):
    kind: EventKind = EventKind.MILESTONE_PAID
    project_id: int
    milestone_index: int
    payee: str
    amount: int


class DisputeRaised(LedgerEvent):
    kind: EventKind = EventKind.DISPUTE_RAISED
    project_id: int
    dispute_id: int
    disputant: str
    reason: str


class DisputeResolved(LedgerEvent):
    kind: EventKind = EventKind.DISPUTE_RESOLVED
    project_id: int
    dispute_id: int
    result: bool
    yes_votes: int
    no_votes: int


class FundsDeposited(LedgerEvent):
    """Value credited to the pooled escrow balance (not tied to a project)."""

    kind: EventKind = EventKind.FUNDS_DEPOSITED
    sender: str
    amount: int


# Registry for deserialization by kind
EVENT_TYPE_MAP: dict[EventKind, type[LedgerEvent]] = {
    EventKind.PROJECT_POSTED: ProjectPosted,
    EventKind.BID_SUBMITTED: BidSubmitted,
    EventKind.BID_SELECTED: BidSelected,
    EventKind.MILESTONE_PAID: MilestonePaid,
    EventKind.DISPUTE_RAISED: DisputeRaised,
    EventKind.DISPUTE_RESOLVED: DisputeResolved,
    EventKind.FUNDS_DEPOSITED: FundsDeposited,
}
