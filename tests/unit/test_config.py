"""Tests for ledger settings — env-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from bidforge.config import DisputeRaiserPolicy, LedgerSettings


class TestLedgerSettings:
    def test_defaults(self):
        config = LedgerSettings()
        assert config.environment == "development"
        assert config.log_level == "INFO"
        assert config.escrow_account == "@escrow"

    def test_is_production_false_by_default(self):
        assert LedgerSettings().is_production is False

    def test_is_production_when_set(self):
        assert LedgerSettings(environment="production").is_production is True

    def test_default_path(self):
        assert LedgerSettings().ledger_path == Path(".bidforge/ledger.db")

    def test_default_raiser_policy_is_permissive(self):
        assert (
            LedgerSettings().dispute_raisers
            == DisputeRaiserPolicy.OWNER_OR_SELECTED_BIDDER
        )

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.setenv("BIDFORGE_LEDGER_PATH", str(tmp_path / "env.db"))
        monkeypatch.setenv("BIDFORGE_DISPUTE_RAISERS", "selected_bidder_only")
        monkeypatch.setenv("BIDFORGE_ESCROW_ACCOUNT", "@vault")
        config = LedgerSettings()
        assert config.ledger_path == tmp_path / "env.db"
        assert config.dispute_raisers == DisputeRaiserPolicy.SELECTED_BIDDER_ONLY
        assert config.escrow_account == "@vault"

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValidationError):
            LedgerSettings(dispute_raisers="anyone")
