"""Project monitor — read-only projection over the ledger with Rich rendering.

Public API
----------
- ``ProjectProjection`` : Pure read-only view that re-reads the ledger.
- ``ProjectSnapshot``   : Frozen point-in-time snapshot of one project.
- ``ProjectRenderer``   : Rich terminal renderer for snapshots and journals.
"""

from bidforge.monitor.projection import MilestoneStatus, ProjectProjection, ProjectSnapshot
from bidforge.monitor.renderer import ProjectRenderer

__all__ = [
    "MilestoneStatus",
    "ProjectProjection",
    "ProjectSnapshot",
    "ProjectRenderer",
]
