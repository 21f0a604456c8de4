"""bidforge: Design-Bid-Build contracting ledger.

Owners post projects with milestone payment tranches, contractors bid,
the owner selects a winner, escrowed funds are released per milestone,
and disputes freeze selection and payment until a majority vote settles
them.  Every committed operation lands in a hash-chained event journal.
"""

__version__ = "0.1.0"
__description__ = "Design-Bid-Build contracting ledger with escrowed milestones"

from bidforge.core.contract import DesignBidBuildLedger
from bidforge.cli.app import app as cli

__all__ = ["DesignBidBuildLedger", "cli", "__version__"]
