"""bidforge data models — all Pydantic v2, all frozen (immutable)."""

from bidforge.models.events import (
    EVENT_TYPE_MAP,
    BidSelected,
    BidSubmitted,
    DisputeRaised,
    DisputeResolved,
    EventKind,
    FundsDeposited,
    LedgerEvent,
    MilestonePaid,
    ProjectPosted,
)
from bidforge.models.project import (
    Bid,
    BiddingState,
    Dispute,
    DisputeState,
    Project,
)

__all__ = [
    # entities
    "Project",
    "Bid",
    "Dispute",
    "BiddingState",
    "DisputeState",
    # events
    "EventKind",
    "LedgerEvent",
    "ProjectPosted",
    "BidSubmitted",
    "BidSelected",
    "MilestonePaid",
    "DisputeRaised",
    "DisputeResolved",
    "FundsDeposited",
    "EVENT_TYPE_MAP",
]
