"""Shared test fixtures for bidforge."""

from __future__ import annotations

from pathlib import Path

import pytest

from bidforge.config import LedgerSettings
from bidforge.core.contract import DesignBidBuildLedger
from bidforge.core.events import EventEmitter
from bidforge.core.store import LedgerStore

OWNER = "0xowner"
ALICE = "0xalice"
BOB = "0xbob"
MILESTONES = [100, 200, 300]


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test databases."""
    return tmp_path


@pytest.fixture
def store(tmp_dir: Path) -> LedgerStore:
    """Provide a fresh LedgerStore backed by a temp SQLite database."""
    s = LedgerStore(tmp_dir / "test_ledger.db")
    yield s
    s.close()


@pytest.fixture
def emitter(store: LedgerStore) -> EventEmitter:
    return EventEmitter(store)


@pytest.fixture
def settings(tmp_dir: Path) -> LedgerSettings:
    return LedgerSettings(ledger_path=tmp_dir / "ledger.db")


@pytest.fixture
def ledger(settings: LedgerSettings) -> DesignBidBuildLedger:
    """Provide a DesignBidBuildLedger wired to a temp database."""
    dbb = DesignBidBuildLedger(settings)
    yield dbb
    dbb.close()


@pytest.fixture
def project_id(ledger: DesignBidBuildLedger) -> int:
    """A posted project with milestones [100, 200, 300], open for bidding."""
    return ledger.post_project(OWNER, "Two-storey extension", 600, 1_800_000_000, MILESTONES)


@pytest.fixture
def awarded_project(ledger: DesignBidBuildLedger, project_id: int) -> int:
    """A project with two bids, bid 0 (ALICE) selected, and escrow funded with 600."""
    ledger.submit_bid(ALICE, project_id, 590, 1_790_000_000, [100, 200, 290])
    ledger.submit_bid(BOB, project_id, 550, 1_795_000_000, [150, 150, 250])
    ledger.select_bid(OWNER, project_id, 0)
    ledger.deposit(OWNER, 600)
    return project_id
