"""Ledger Store — SQLite-backed custody of every entity, counter and balance.

The store is the single source of truth.  Components never hold entity
state of their own; they read, ``model_copy`` and write back through the
store inside ``transaction()``.

Design:
- One long-lived connection in autocommit mode; transactions are explicit
  (``BEGIN IMMEDIATE`` / ``COMMIT`` / ``ROLLBACK``).
- A re-entrant lock serializes every operation, so the ledger behaves as a
  single sequential log.  A call made from inside a running transaction
  (for example by a funds-transfer backend) nests as a SAVEPOINT.
- Id counters live in the database and are bumped inside the owning
  transaction, so a rolled-back operation never consumes an id.
- Commit callbacks run only after the outermost transaction commits.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from bidforge.models.events import EVENT_TYPE_MAP, EventKind, LedgerEvent
from bidforge.models.project import Bid, Dispute, Project

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_COUNTERS = """
CREATE TABLE IF NOT EXISTS counters (
    name   TEXT PRIMARY KEY,
    value  INTEGER NOT NULL DEFAULT 0
);
"""

_CREATE_PROJECTS = """
CREATE TABLE IF NOT EXISTS projects (
    project_id  INTEGER PRIMARY KEY,
    body_json   TEXT NOT NULL
);
"""

_CREATE_BIDS = """
CREATE TABLE IF NOT EXISTS bids (
    bid_id      INTEGER PRIMARY KEY,
    project_id  INTEGER NOT NULL REFERENCES projects(project_id),
    bid_index   INTEGER NOT NULL,
    body_json   TEXT NOT NULL,
    UNIQUE (project_id, bid_index)
);
"""

_CREATE_DISPUTES = """
CREATE TABLE IF NOT EXISTS disputes (
    dispute_id  INTEGER PRIMARY KEY,
    project_id  INTEGER NOT NULL REFERENCES projects(project_id),
    body_json   TEXT NOT NULL
);
"""

_CREATE_ACCOUNTS = """
CREATE TABLE IF NOT EXISTS accounts (
    address  TEXT PRIMARY KEY,
    balance  INTEGER NOT NULL DEFAULT 0 CHECK (balance >= 0)
);
"""

_CREATE_EVENTS = """
CREATE TABLE IF NOT EXISTS events (
    seq                  INTEGER PRIMARY KEY AUTOINCREMENT,
    event_id             TEXT NOT NULL UNIQUE,
    kind                 TEXT NOT NULL,
    project_id           INTEGER,
    body_json            TEXT NOT NULL,
    previous_entry_hash  TEXT NOT NULL DEFAULT '',
    entry_hash           TEXT NOT NULL UNIQUE
);
"""

_CREATE_IDX_EVENTS_PROJECT = """
CREATE INDEX IF NOT EXISTS idx_events_project ON events(project_id, seq);
"""

PROJECT_COUNTER = "project"
BID_COUNTER = "bid"
DISPUTE_COUNTER = "dispute"
_COUNTERS = (PROJECT_COUNTER, BID_COUNTER, DISPUTE_COUNTER)


# Largest value an SQLite INTEGER column holds.
MAX_AMOUNT = 2**63 - 1


class InsufficientFundsError(RuntimeError):
    """Raised when a debit would take an account below zero."""


class BalanceOverflowError(RuntimeError):
    """Raised when a credit would take an account past ``MAX_AMOUNT``."""


class LedgerStore:
    """Transactional store for projects, bids, disputes, balances and events.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file, created if missing.  Pass
        ``":memory:"`` for a throwaway in-process ledger.
    """

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = db_path if db_path == ":memory:" else Path(db_path)
        if isinstance(self._db_path, Path):
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._depth = 0
        self._on_commit: list[Callable[[], None]] = []
        self._conn = sqlite3.connect(
            str(self._db_path), check_same_thread=False, isolation_level=None
        )
        self._init_schema()

    def _init_schema(self) -> None:
        with self._lock:
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            for ddl in (
                _CREATE_COUNTERS,
                _CREATE_PROJECTS,
                _CREATE_BIDS,
                _CREATE_DISPUTES,
                _CREATE_ACCOUNTS,
                _CREATE_EVENTS,
                _CREATE_IDX_EVENTS_PROJECT,
            ):
                self._conn.execute(ddl)
            self._conn.executemany(
                "INSERT OR IGNORE INTO counters (name, value) VALUES (?, 0)",
                [(name,) for name in _COUNTERS],
            )

    @property
    def db_path(self) -> Path | str:
        return self._db_path

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run a block as one all-or-nothing unit.

        Any exception rolls back every write made inside the block
        (including id allocation and queued commit callbacks) and is
        re-raised unchanged.
        """
        with self._lock:
            depth = self._depth
            savepoint = f"sp_{depth}"
            mark = len(self._on_commit)
            if depth == 0:
                self._conn.execute("BEGIN IMMEDIATE")
            else:
                self._conn.execute(f"SAVEPOINT {savepoint}")
            self._depth += 1
            try:
                yield
            except BaseException:
                self._depth -= 1
                del self._on_commit[mark:]
                if depth == 0:
                    self._conn.execute("ROLLBACK")
                else:
                    self._conn.execute(f"ROLLBACK TO SAVEPOINT {savepoint}")
                    self._conn.execute(f"RELEASE SAVEPOINT {savepoint}")
                raise
            self._depth -= 1
            if depth > 0:
                self._conn.execute(f"RELEASE SAVEPOINT {savepoint}")
                return
            callbacks, self._on_commit = self._on_commit, []
            try:
                self._conn.execute("COMMIT")
            except sqlite3.Error:
                # A failed COMMIT can leave the transaction open
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                raise

        for callback in callbacks:
            callback()

    @property
    def in_transaction(self) -> bool:
        with self._lock:
            return self._depth > 0

    def call_on_commit(self, callback: Callable[[], None]) -> None:
        """Queue *callback* to run once the outermost transaction commits.

        Discarded if the transaction (or the savepoint that queued it)
        rolls back.
        """
        self._require_transaction()
        self._on_commit.append(callback)

    def _require_transaction(self) -> None:
        if self._depth == 0:
            raise RuntimeError("Ledger writes must run inside LedgerStore.transaction()")

    # ------------------------------------------------------------------
    # Id generators
    # ------------------------------------------------------------------

    def next_id(self, counter: str) -> int:
        """Allocate the next id from *counter* (first id is 1)."""
        with self._lock:
            self._require_transaction()
            self._conn.execute(
                "UPDATE counters SET value = value + 1 WHERE name = ?", (counter,)
            )
            row = self._conn.execute(
                "SELECT value FROM counters WHERE name = ?", (counter,)
            ).fetchone()
        if row is None:
            raise KeyError(f"Unknown counter: {counter!r}")
        return int(row[0])

    def current_count(self, counter: str) -> int:
        """Return the last id handed out by *counter* (0 if none yet)."""
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM counters WHERE name = ?", (counter,)
            ).fetchone()
        if row is None:
            raise KeyError(f"Unknown counter: {counter!r}")
        return int(row[0])

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def insert_project(self, project: Project) -> None:
        with self._lock:
            self._require_transaction()
            self._conn.execute(
                "INSERT INTO projects (project_id, body_json) VALUES (?, ?)",
                (project.project_id, project.model_dump_json()),
            )

    def update_project(self, project: Project) -> None:
        with self._lock:
            self._require_transaction()
            self._conn.execute(
                "UPDATE projects SET body_json = ? WHERE project_id = ?",
                (project.model_dump_json(), project.project_id),
            )

    def get_project(self, project_id: int) -> Project | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT body_json FROM projects WHERE project_id = ?", (project_id,)
            ).fetchone()
        return Project.model_validate_json(row[0]) if row else None

    def list_projects(self) -> list[Project]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT body_json FROM projects ORDER BY project_id ASC"
            ).fetchall()
        return [Project.model_validate_json(row[0]) for row in rows]

    # ------------------------------------------------------------------
    # Bids
    # ------------------------------------------------------------------

    def insert_bid(self, bid: Bid) -> None:
        with self._lock:
            self._require_transaction()
            self._conn.execute(
                "INSERT INTO bids (bid_id, project_id, bid_index, body_json) VALUES (?, ?, ?, ?)",
                (bid.bid_id, bid.project_id, bid.bid_index, bid.model_dump_json()),
            )

    def update_bid(self, bid: Bid) -> None:
        with self._lock:
            self._require_transaction()
            self._conn.execute(
                "UPDATE bids SET body_json = ? WHERE bid_id = ?",
                (bid.model_dump_json(), bid.bid_id),
            )

    def get_bid(self, project_id: int, bid_index: int) -> Bid | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT body_json FROM bids WHERE project_id = ? AND bid_index = ?",
                (project_id, bid_index),
            ).fetchone()
        return Bid.model_validate_json(row[0]) if row else None

    def get_bids(self, project_id: int) -> list[Bid]:
        """Return a project's bids in submission (index) order."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT body_json FROM bids WHERE project_id = ? ORDER BY bid_index ASC",
                (project_id,),
            ).fetchall()
        return [Bid.model_validate_json(row[0]) for row in rows]

    def count_bids(self, project_id: int) -> int:
        with self._lock:
            row = self._conn.execute(
                "SELECT COUNT(*) FROM bids WHERE project_id = ?", (project_id,)
            ).fetchone()
        return int(row[0])

    # ------------------------------------------------------------------
    # Disputes
    # ------------------------------------------------------------------

    def insert_dispute(self, dispute: Dispute) -> None:
        with self._lock:
            self._require_transaction()
            self._conn.execute(
                "INSERT INTO disputes (dispute_id, project_id, body_json) VALUES (?, ?, ?)",
                (dispute.dispute_id, dispute.project_id, dispute.model_dump_json()),
            )

    def update_dispute(self, dispute: Dispute) -> None:
        with self._lock:
            self._require_transaction()
            self._conn.execute(
                "UPDATE disputes SET body_json = ? WHERE dispute_id = ?",
                (dispute.model_dump_json(), dispute.dispute_id),
            )

    def get_dispute(self, dispute_id: int) -> Dispute | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT body_json FROM disputes WHERE dispute_id = ?", (dispute_id,)
            ).fetchone()
        return Dispute.model_validate_json(row[0]) if row else None

    def get_disputes_for_project(self, project_id: int) -> list[Dispute]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT body_json FROM disputes WHERE project_id = ? ORDER BY dispute_id ASC",
                (project_id,),
            ).fetchall()
        return [Dispute.model_validate_json(row[0]) for row in rows]

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    def balance_of(self, address: str) -> int:
        with self._lock:
            row = self._conn.execute(
                "SELECT balance FROM accounts WHERE address = ?", (address,)
            ).fetchone()
        return int(row[0]) if row else 0

    def credit(self, address: str, amount: int) -> None:
        """Add *amount* to *address*, refusing to exceed ``MAX_AMOUNT``."""
        with self._lock:
            self._require_transaction()
            balance = self.balance_of(address)
            if amount > MAX_AMOUNT - balance:
                raise BalanceOverflowError(
                    f"Account {address!r} holds {balance}, cannot credit {amount}"
                )
            self._conn.execute(
                """
                INSERT INTO accounts (address, balance) VALUES (?, ?)
                ON CONFLICT(address) DO UPDATE SET balance = balance + excluded.balance
                """,
                (address, amount),
            )

    def debit(self, address: str, amount: int) -> None:
        """Remove *amount* from *address*, refusing to overdraw."""
        with self._lock:
            self._require_transaction()
            balance = self.balance_of(address)
            if balance < amount:
                raise InsufficientFundsError(
                    f"Account {address!r} holds {balance}, cannot debit {amount}"
                )
            self._conn.execute(
                "UPDATE accounts SET balance = balance - ? WHERE address = ?",
                (amount, address),
            )

    # ------------------------------------------------------------------
    # Event journal
    # ------------------------------------------------------------------

    def get_latest_event_hash(self) -> str:
        with self._lock:
            row = self._conn.execute(
                "SELECT entry_hash FROM events ORDER BY seq DESC LIMIT 1"
            ).fetchone()
        return row[0] if row else ""

    def insert_event(self, event: LedgerEvent) -> None:
        """Persist a sealed event.  Sealing is the emitter's job."""
        with self._lock:
            self._require_transaction()
            self._conn.execute(
                """
                INSERT INTO events
                    (event_id, kind, project_id, body_json,
                     previous_entry_hash, entry_hash)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    event.event_id,
                    event.kind.value,
                    event.project_id,
                    event.model_dump_json(),
                    event.previous_entry_hash,
                    event.entry_hash,
                ),
            )

    def get_events(
        self,
        *,
        project_id: int | None = None,
        kind: EventKind | None = None,
    ) -> list[LedgerEvent]:
        """Return journal events in emission order, optionally filtered."""
        query = "SELECT kind, body_json, previous_entry_hash, entry_hash FROM events"
        clauses: list[str] = []
        params: list[object] = []
        if project_id is not None:
            clauses.append("project_id = ?")
            params.append(project_id)
        if kind is not None:
            clauses.append("kind = ?")
            params.append(EventKind(kind).value)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY seq ASC"

        with self._lock:
            rows = self._conn.execute(query, params).fetchall()
        return [self._row_to_event(row) for row in rows]

    @staticmethod
    def _row_to_event(row: tuple) -> LedgerEvent:
        """Rebuild an event; the chain columns are authoritative over the body."""
        kind, body_json, previous_entry_hash, entry_hash = row
        model_cls = EVENT_TYPE_MAP[EventKind(kind)]
        event = model_cls.model_validate_json(body_json)
        return event.model_copy(
            update={
                "previous_entry_hash": previous_entry_hash,
                "entry_hash": entry_hash,
            }
        )
