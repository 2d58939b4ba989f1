"""Admin endpoints."""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from elections.api.deps import get_db, verify_admin_token
from elections.api.errors import http_error
from elections.core.rate_limit import limiter, RATE_LIMITS
from elections.schemas import (
    ElectionCreate,
    ElectionCreated,
    MaintenanceResponse,
    MoveUserRequest,
    MoveUserResponse,
    RebuildResponse,
    StatusResponse,
    SuccessResponse,
    VoterEntry,
)
from elections.services import elections as election_service

router = APIRouter(dependencies=[Depends(verify_admin_token)])


@router.post("/elections", response_model=ElectionCreated, status_code=201)
@limiter.limit(RATE_LIMITS["admin_write"])
async def create_election_endpoint(
    request: Request,
    election: ElectionCreate,
    db: Session = Depends(get_db)
):
    """
    Create an election with its questions and answers (admin only).

    Question and answer numbers follow list order, starting at zero.

    Raises:
        HTTPException: 400 if the slug is taken or the election is invalid
        HTTPException: 401 if not authenticated as admin

    Example:
        Request:
            POST /api/v1/admin/elections
            Cookie: admin_token=eyJhbGc...
            {
                "pid": "board-2026",
                "topic": "Board election",
                "closes": "2026-11-03T16:00:00Z",
                "questions": [
                    {"text": "Chair", "answers": [{"text": "Alice"}, {"text": "Bob"}]}
                ]
            }

        Response (201):
            {
                "election_id": 3,
                "pid": "board-2026"
            }
    """
    data = election.model_dump()
    try:
        created = election_service.create_election(db, **data)
    except ValueError as e:
        raise http_error(e)
    return ElectionCreated(election_id=created.id, pid=created.pid)


@router.delete("/elections/{pid}", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
async def delete_election_endpoint(
    request: Request,
    pid: str,
    db: Session = Depends(get_db)
):
    """Delete an election together with every ballot cast in it (admin only)."""
    try:
        deleted = election_service.delete_election(db, pid.lower())
    except ValueError as e:
        raise http_error(e)
    if not deleted:
        raise HTTPException(status_code=404, detail="Election not found")
    return SuccessResponse(success=True, message="Election deleted")


@router.post("/elections/{pid}/reset", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
async def reset_election_endpoint(
    request: Request,
    pid: str,
    db: Session = Depends(get_db)
):
    """
    Discard every ballot of an election (admin only).

    Voters, ledger rows and tallies are cleared and outstanding "already
    voted" cookies stop counting. Archived elections cannot be reset.

    Raises:
        HTTPException: 404 if the election does not exist
        HTTPException: 409 if the election is archived
    """
    try:
        election_service.reset_election(db, pid.lower())
    except ValueError as e:
        raise http_error(e)
    return SuccessResponse(success=True, message="Election reset")


@router.post("/elections/{pid}/toggle", response_model=StatusResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
async def toggle_election_endpoint(
    request: Request,
    pid: str,
    db: Session = Depends(get_db)
):
    """Open a closed election or close an open one (admin only)."""
    try:
        status = election_service.toggle_status(db, pid.lower())
    except ValueError as e:
        raise http_error(e)
    return StatusResponse(pid=pid.lower(), status=status.name)


@router.post("/elections/{pid}/archive", response_model=StatusResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
async def archive_election_endpoint(
    request: Request,
    pid: str,
    db: Session = Depends(get_db)
):
    """Archive an election. Archived elections are read-only for good (admin only)."""
    try:
        election = election_service.archive_election(db, pid.lower())
    except ValueError as e:
        raise http_error(e)
    return StatusResponse(pid=election.pid, status="ARCHIVED")


@router.get("/elections/{pid}/voters", response_model=List[VoterEntry])
@limiter.limit(RATE_LIMITS["admin_read"])
async def list_voters_endpoint(
    request: Request,
    pid: str,
    db: Session = Depends(get_db)
):
    """
    List who voted in an election and when (admin only).

    Ballot contents are sealed with the voters' keys and are never part of
    this listing.
    """
    try:
        return election_service.list_voters(db, pid.lower())
    except ValueError as e:
        raise http_error(e)


@router.post("/elections/{pid}/tally/rebuild", response_model=RebuildResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
async def rebuild_tally_endpoint(
    request: Request,
    pid: str,
    db: Session = Depends(get_db)
):
    """Recount the cached answer counters from the vote ledger (admin only)."""
    try:
        repaired = election_service.rebuild_tallies(db, pid.lower())
    except ValueError as e:
        raise http_error(e)
    return RebuildResponse(pid=pid.lower(), repaired=repaired)


@router.post("/maintenance", response_model=MaintenanceResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
async def maintenance_endpoint(
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Run housekeeping (admin only).

    Archives elections that closed longer ago than the configured archive
    period and blanks voter IP addresses past the retention period.
    """
    try:
        return election_service.run_maintenance(db)
    except ValueError as e:
        raise http_error(e)


@router.post("/users/move", response_model=MoveUserResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
async def move_user_endpoint(
    request: Request,
    move: MoveUserRequest,
    db: Session = Depends(get_db)
):
    """
    Hand one user account's elections and ballots over to another (admin only).

    Used when the host site merges accounts. Where the destination account
    already voted in an election, both ballots are kept apart.

    Raises:
        HTTPException: 400 if both ids are the same account
    """
    try:
        return election_service.move_user(db, move.from_user_id, move.to_user_id)
    except ValueError as e:
        raise http_error(e)
