"""Error taxonomy for the voting core.

All errors derive from ``ElectionsError`` which is itself a ``ValueError``,
so endpoint code can keep catching ``ValueError`` for the generic 400 path
and pick out the specific classes where the status code differs.

Ineligibility is normally reported as an ``Eligibility`` value by the
predicates in ``elections.services.eligibility``; ``EligibilityDenied`` is
only raised when a caller tries to submit a ballot anyway.
"""
from typing import Optional


class ElectionsError(ValueError):
    """Base class for all domain errors."""


class ElectionNotFound(ElectionsError):
    def __init__(self, pid=None):
        self.pid = pid
        super().__init__("Election not found")


class ElectionArchived(ElectionsError):
    def __init__(self, pid=None):
        self.pid = pid
        super().__init__("Election is archived and cannot be changed")


class BallotValidationError(ElectionsError):
    """Malformed or incomplete ballot. The caller should re-prompt."""


class EligibilityDenied(ElectionsError):
    """The principal may not cast (or amend) a ballot right now."""

    def __init__(self, reason, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message or "Voting for this election is unavailable")


class BallotConflict(ElectionsError):
    """A concurrent submission already recorded (or replaced) this ballot."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Your vote has already been recorded")


class KeyMismatch(ElectionsError):
    """Raised for unknown records, malformed keys and failed decryption alike."""

    def __init__(self):
        super().__init__("Invalid access key")


class StorageError(ElectionsError):
    """A data-layer failure. The message shown to users never includes detail."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Error recording data during {operation}")
