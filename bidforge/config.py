"""Runtime configuration — env-driven via pydantic-settings.

Reads from a .env file and BIDFORGE_* environment variables.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class DisputeRaiserPolicy(str, Enum):
    """Who may open a dispute on a project.

    Earlier revisions of the workflow disagreed on this rule, so both are
    offered.  ``OWNER_OR_SELECTED_BIDDER`` is the default; the narrower
    ``SELECTED_BIDDER_ONLY`` must be chosen explicitly.
    """

    OWNER_OR_SELECTED_BIDDER = "owner_or_selected_bidder"
    SELECTED_BIDDER_ONLY = "selected_bidder_only"


class LedgerSettings(BaseSettings):
    """Ledger configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export BIDFORGE_LEDGER_PATH=/data/ledger.db
        export BIDFORGE_DISPUTE_RAISERS=selected_bidder_only
        export BIDFORGE_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BIDFORGE_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Storage
    ledger_path: Path = Path(".bidforge/ledger.db")

    # Escrow custody: the single pooled account debited by milestone release
    escrow_account: str = "@escrow"

    # Authorization
    dispute_raisers: DisputeRaiserPolicy = DisputeRaiserPolicy.OWNER_OR_SELECTED_BIDDER

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton; import as `from bidforge.config import settings`
settings = LedgerSettings()
