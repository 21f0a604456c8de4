"""Event Emitter — hash-chained notification journal with subscriber fan-out.

Emitting happens inside the caller's transaction: the event is sealed
(``previous_entry_hash`` + ``entry_hash``) and written to the journal, so
a rolled-back operation leaves no notification behind.  Subscribers are
called only after the outermost transaction commits.  A failing
subscriber is logged and does not stop delivery to the others.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from bidforge.core.hasher import compute_entry_hash
from bidforge.core.store import LedgerStore
from bidforge.models.events import EventKind, LedgerEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[LedgerEvent], None]


class JournalIntegrityError(RuntimeError):
    """Raised when the event journal hash chain is broken."""


class EventEmitter:
    """Seals events into the journal and dispatches them to subscribers.

    Parameters
    ----------
    store:
        The Ledger Store that holds the journal.
    """

    def __init__(self, store: LedgerStore) -> None:
        self._store = store
        self._handlers: dict[EventKind | None, list[EventHandler]] = {}

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(self, handler: EventHandler, kind: EventKind | None = None) -> None:
        """Register *handler* for one event kind, or for all kinds if ``None``."""
        self._handlers.setdefault(kind, []).append(handler)

    def unsubscribe(self, handler: EventHandler, kind: EventKind | None = None) -> None:
        try:
            self._handlers.get(kind, []).remove(handler)
        except ValueError:
            pass

    # ------------------------------------------------------------------
    # Emit (seal + journal + deferred dispatch)
    # ------------------------------------------------------------------

    def emit(self, event: LedgerEvent) -> LedgerEvent:
        """Seal *event* into the journal and queue it for subscribers.

        Must be called inside ``LedgerStore.transaction()``.  Returns the
        sealed event.
        """
        previous_hash = self._store.get_latest_event_hash()

        entry_dict = event.model_dump(mode="json")
        entry_dict["previous_entry_hash"] = previous_hash
        entry_dict["entry_hash"] = ""

        sealed = event.model_copy(
            update={
                "previous_entry_hash": previous_hash,
                "entry_hash": compute_entry_hash(entry_dict),
            }
        )
        self._store.insert_event(sealed)
        self._store.call_on_commit(lambda: self._dispatch(sealed))
        logger.debug("Journaled %s event %s", sealed.kind.value, sealed.event_id)
        return sealed

    def _dispatch(self, event: LedgerEvent) -> None:
        handlers = self._handlers.get(event.kind, []) + self._handlers.get(None, [])
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Subscriber %r failed for %s event %s",
                    handler,
                    event.kind.value,
                    event.event_id,
                )

    # ------------------------------------------------------------------
    # Chain verification
    # ------------------------------------------------------------------

    def verify_journal(self) -> bool:
        """Verify the hash chain of the whole journal.

        Walks every event in order, recomputes each ``entry_hash`` and
        checks the ``previous_entry_hash`` links.  Returns ``True`` if the
        chain is intact, raises ``JournalIntegrityError`` otherwise.
        """
        prev_hash = ""
        for event in self._store.get_events():
            if event.previous_entry_hash != prev_hash:
                raise JournalIntegrityError(
                    f"Chain broken at event {event.event_id}: "
                    f"expected previous_hash={prev_hash!r}, "
                    f"got {event.previous_entry_hash!r}"
                )

            expected_hash = compute_entry_hash(event.model_dump(mode="json"))
            if event.entry_hash != expected_hash:
                raise JournalIntegrityError(
                    f"Tampered event {event.event_id}: "
                    f"expected hash={expected_hash!r}, "
                    f"got {event.entry_hash!r}"
                )

            prev_hash = event.entry_hash

        return True
