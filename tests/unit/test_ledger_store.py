"""Tests for the LedgerStore — counters, transactions, balances, persistence."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from bidforge.core.store import (
    BID_COUNTER,
    DISPUTE_COUNTER,
    MAX_AMOUNT,
    PROJECT_COUNTER,
    BalanceOverflowError,
    InsufficientFundsError,
    LedgerStore,
)
from bidforge.models.project import Project


def _project(project_id: int, owner: str = "0xowner") -> Project:
    return Project(
        project_id=project_id,
        owner=owner,
        description="Garage",
        budget=50,
        deadline=0,
        milestones=[20, 30],
        milestone_paid=[False, False],
    )


class FailingCommitConnection:
    """Wraps a connection so the next COMMIT fails as if the database were locked."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self.failed = False

    def execute(self, sql: str, *args):
        if sql == "COMMIT" and not self.failed:
            self.failed = True
            raise sqlite3.OperationalError("database is locked")
        return self._conn.execute(sql, *args)

    def __getattr__(self, name: str):
        return getattr(self._conn, name)


class TestCounters:
    def test_counters_start_at_one(self, store: LedgerStore):
        with store.transaction():
            assert store.next_id(PROJECT_COUNTER) == 1
            assert store.next_id(PROJECT_COUNTER) == 2

    def test_counters_are_independent(self, store: LedgerStore):
        with store.transaction():
            store.next_id(PROJECT_COUNTER)
            store.next_id(PROJECT_COUNTER)
            assert store.next_id(BID_COUNTER) == 1
            assert store.next_id(DISPUTE_COUNTER) == 1
        assert store.current_count(PROJECT_COUNTER) == 2

    def test_current_count_zero_initially(self, store: LedgerStore):
        assert store.current_count(PROJECT_COUNTER) == 0

    def test_rolled_back_allocation_is_not_consumed(self, store: LedgerStore):
        with pytest.raises(ValueError):
            with store.transaction():
                store.next_id(PROJECT_COUNTER)
                raise ValueError("boom")
        with store.transaction():
            assert store.next_id(PROJECT_COUNTER) == 1

    def test_unknown_counter(self, store: LedgerStore):
        with pytest.raises(KeyError):
            store.current_count("widgets")

    def test_next_id_outside_transaction_rejected(self, store: LedgerStore):
        with pytest.raises(RuntimeError, match="transaction"):
            store.next_id(PROJECT_COUNTER)


class TestTransactions:
    def test_commit_persists(self, store: LedgerStore):
        with store.transaction():
            store.insert_project(_project(1))
        assert store.get_project(1) is not None

    def test_rollback_discards_writes(self, store: LedgerStore):
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.insert_project(_project(1))
                raise RuntimeError("abort")
        assert store.get_project(1) is None

    def test_nested_failure_rolls_back_only_inner(self, store: LedgerStore):
        with store.transaction():
            store.insert_project(_project(1))
            with pytest.raises(RuntimeError):
                with store.transaction():
                    store.insert_project(_project(2))
                    raise RuntimeError("inner abort")
        assert store.get_project(1) is not None
        assert store.get_project(2) is None

    def test_outer_failure_rolls_back_committed_inner(self, store: LedgerStore):
        with pytest.raises(RuntimeError):
            with store.transaction():
                with store.transaction():
                    store.insert_project(_project(1))
                raise RuntimeError("outer abort")
        assert store.get_project(1) is None

    def test_on_commit_runs_after_commit(self, store: LedgerStore):
        seen: list[bool] = []
        with store.transaction():
            store.insert_project(_project(1))
            store.call_on_commit(lambda: seen.append(store.in_transaction))
            assert seen == []
        assert seen == [False]

    def test_on_commit_dropped_on_rollback(self, store: LedgerStore):
        seen: list[str] = []
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.call_on_commit(lambda: seen.append("ran"))
                raise RuntimeError("abort")
        with store.transaction():
            pass
        assert seen == []

    def test_on_commit_from_failed_savepoint_dropped(self, store: LedgerStore):
        seen: list[str] = []
        with store.transaction():
            store.call_on_commit(lambda: seen.append("outer"))
            with pytest.raises(RuntimeError):
                with store.transaction():
                    store.call_on_commit(lambda: seen.append("inner"))
                    raise RuntimeError("inner abort")
        assert seen == ["outer"]

    def test_writes_outside_transaction_rejected(self, store: LedgerStore):
        with pytest.raises(RuntimeError, match="transaction"):
            store.insert_project(_project(1))

    def test_failed_commit_rolls_back_and_drops_callbacks(self, store: LedgerStore):
        seen: list[str] = []
        real = store._conn
        store._conn = FailingCommitConnection(real)
        try:
            with pytest.raises(sqlite3.OperationalError, match="locked"):
                with store.transaction():
                    store.insert_project(_project(1))
                    store.call_on_commit(lambda: seen.append("ran"))
            assert store._conn.failed is True
            assert real.in_transaction is False
            assert store.in_transaction is False
            assert store.get_project(1) is None

            # The store stays usable and the stale callback never fires
            with store.transaction():
                store.insert_project(_project(2))
        finally:
            store._conn = real
        assert seen == []
        assert store.get_project(2) is not None


class TestBalances:
    def test_unknown_account_is_zero(self, store: LedgerStore):
        assert store.balance_of("0xnobody") == 0

    def test_credit_accumulates(self, store: LedgerStore):
        with store.transaction():
            store.credit("0xa", 10)
            store.credit("0xa", 5)
        assert store.balance_of("0xa") == 15

    def test_debit(self, store: LedgerStore):
        with store.transaction():
            store.credit("0xa", 10)
            store.debit("0xa", 4)
        assert store.balance_of("0xa") == 6

    def test_overdraw_refused(self, store: LedgerStore):
        with store.transaction():
            store.credit("0xa", 10)
        with pytest.raises(InsufficientFundsError):
            with store.transaction():
                store.debit("0xa", 11)
        assert store.balance_of("0xa") == 10

    def test_credit_refuses_overflow(self, store: LedgerStore):
        with store.transaction():
            store.credit("0xa", MAX_AMOUNT - 1)
            store.credit("0xa", 1)
        with pytest.raises(BalanceOverflowError):
            with store.transaction():
                store.credit("0xa", 1)
        assert store.balance_of("0xa") == MAX_AMOUNT


class TestEntities:
    def test_project_round_trip(self, store: LedgerStore):
        with store.transaction():
            store.insert_project(_project(1))
        loaded = store.get_project(1)
        assert loaded is not None
        assert loaded.milestones == [20, 30]
        assert loaded.milestone_paid == [False, False]

    def test_update_project(self, store: LedgerStore):
        with store.transaction():
            store.insert_project(_project(1))
        project = store.get_project(1)
        with store.transaction():
            store.update_project(project.model_copy(update={"active": False}))
        assert store.get_project(1).active is False

    def test_list_projects_ordered(self, store: LedgerStore):
        with store.transaction():
            store.insert_project(_project(2))
            store.insert_project(_project(1))
        assert [p.project_id for p in store.list_projects()] == [1, 2]

    def test_missing_entities_are_none(self, store: LedgerStore):
        assert store.get_project(99) is None
        assert store.get_bid(99, 0) is None
        assert store.get_dispute(99) is None

    def test_state_survives_reopen(self, tmp_dir: Path):
        path = tmp_dir / "persist.db"
        first = LedgerStore(path)
        with first.transaction():
            first.next_id(PROJECT_COUNTER)
            first.insert_project(_project(1))
            first.credit("0xa", 7)
        first.close()

        second = LedgerStore(path)
        assert second.current_count(PROJECT_COUNTER) == 1
        assert second.get_project(1) is not None
        assert second.balance_of("0xa") == 7
        second.close()

    def test_in_memory_store(self):
        mem = LedgerStore(":memory:")
        with mem.transaction():
            assert mem.next_id(PROJECT_COUNTER) == 1
        mem.close()
