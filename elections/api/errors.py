"""Translation of domain errors to HTTP errors."""
from fastapi import HTTPException

from elections.core.exceptions import (
    BallotConflict,
    ElectionArchived,
    ElectionNotFound,
    EligibilityDenied,
    StorageError,
)

ERROR_STATUS = {
    ElectionNotFound: 404,
    EligibilityDenied: 403,
    BallotConflict: 409,
    ElectionArchived: 409,
}


def http_error(exc: ValueError) -> Exception:
    """
    Pick the HTTP error to raise for a domain error.

    Any other ``ValueError`` (bad ballots, bad keys, bad input) is a 400.
    ``StorageError`` is returned unchanged so the application-level handler
    answers with a generic 500.
    """
    if isinstance(exc, StorageError):
        return exc
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
