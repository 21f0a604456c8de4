"""Authorization and state predicates evaluated at the start of operations.

Each guard either returns quietly or raises the matching ``LedgerError``.
Operations call them explicitly, in order, before touching any state.
"""

from __future__ import annotations

from bidforge.config import DisputeRaiserPolicy
from bidforge.core.errors import InvalidStateError, NotFoundError, UnauthorizedError
from bidforge.core.store import LedgerStore
from bidforge.models.project import Project


def require_project(store: LedgerStore, project_id: int) -> Project:
    project = store.get_project(project_id)
    if project is None:
        raise NotFoundError(f"Project {project_id} does not exist")
    return project


def is_owner(project: Project, caller: str) -> bool:
    return caller == project.owner


def is_selected_bidder(project: Project, caller: str) -> bool:
    return project.selected_bidder is not None and caller == project.selected_bidder


def may_raise_dispute(
    project: Project, caller: str, policy: DisputeRaiserPolicy
) -> bool:
    """Whether *caller* may open a dispute on *project* under *policy*."""
    if policy == DisputeRaiserPolicy.SELECTED_BIDDER_ONLY:
        return is_selected_bidder(project, caller)
    return is_owner(project, caller) or is_selected_bidder(project, caller)


def require_owner(project: Project, caller: str, action: str) -> None:
    if not is_owner(project, caller):
        raise UnauthorizedError(
            f"Only the owner of project {project.project_id} may {action}; "
            f"{caller!r} is not the owner"
        )


def require_dispute_raiser(
    project: Project, caller: str, policy: DisputeRaiserPolicy
) -> None:
    if not may_raise_dispute(project, caller, policy):
        allowed = (
            "the selected bidder"
            if policy == DisputeRaiserPolicy.SELECTED_BIDDER_ONLY
            else "the owner or the selected bidder"
        )
        raise UnauthorizedError(
            f"Only {allowed} may raise a dispute on project "
            f"{project.project_id}; {caller!r} may not"
        )


def require_no_open_dispute(project: Project, action: str) -> None:
    if project.dispute_raised:
        raise InvalidStateError(
            f"Cannot {action}: project {project.project_id} has an open dispute"
            + (
                f" (dispute {project.open_dispute_id})"
                if project.open_dispute_id is not None
                else ""
            )
        )
