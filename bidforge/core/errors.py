"""Error taxonomy for ledger operations.

Every failed operation surfaces synchronously as one of five kinds.  The
kind travels with the exception so callers (the CLI, an API layer) can map
failures without inspecting message text.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """The five failure kinds a ledger operation can report."""

    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    VALIDATION = "validation_error"
    INVALID_STATE = "invalid_state"
    TRANSFER_FAILED = "transfer_failed"


class LedgerError(RuntimeError):
    """Base class for all ledger operation failures."""

    kind: ErrorKind


class UnauthorizedError(LedgerError):
    """Raised when the caller lacks the role the operation requires."""

    kind = ErrorKind.UNAUTHORIZED


class NotFoundError(LedgerError):
    """Raised when a referenced project, bid, or dispute does not exist."""

    kind = ErrorKind.NOT_FOUND


class LedgerValidationError(LedgerError):
    """Raised on malformed input: empty milestones, count mismatch, bad index, repeat vote."""

    kind = ErrorKind.VALIDATION


class InvalidStateError(LedgerError):
    """Raised when the lifecycle or dispute status forbids the operation."""

    kind = ErrorKind.INVALID_STATE


class TransferFailedError(LedgerError):
    """Raised when a fund movement did not complete.

    The enclosing transaction is rolled back, so no partial state
    (such as a milestone marked paid) survives.
    """

    kind = ErrorKind.TRANSFER_FAILED
