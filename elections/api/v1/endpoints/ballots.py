"""Ballot endpoints."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from elections.api.deps import get_db, get_election_or_404, get_principal
from elections.api.errors import http_error
from elections.core import config
from elections.core.principal import Principal
from elections.core.rate_limit import get_client_ip, limiter, RATE_LIMITS
from elections.db.models import Election
from elections.schemas import BallotRequest, BallotResponse, DecodedBallotResponse, RetrieveRequest
from elections.services.ballot import retrieve_ballot, submit_ballot
from elections.services.eligibility import can_update, can_view_ballot

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/{pid}/ballots", response_model=BallotResponse)
@limiter.limit(RATE_LIMITS["ballot"])
async def submit_ballot_endpoint(
    request: Request,
    response: Response,
    ballot: BallotRequest,
    election: Election = Depends(get_election_or_404),
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db)
) -> BallotResponse:
    """
    Cast a ballot, or amend one by passing its access key.

    Every question must be answered. On success the response carries the
    voter's access key, ``<record id>:<private key>``; it is shown exactly
    once and is the only way to view or change the ballot later. An
    "already voted" cookie scoped to the election is set as well.

    Raises:
        HTTPException: 400 if the ballot is incomplete or the access key is invalid
        HTTPException: 403 if the requester may not vote (or amend) now
        HTTPException: 409 if a concurrent request already recorded this user's ballot

    Rate Limit:
        60 requests per minute per IP

    Example:
        Request:
            POST /api/v1/elections/board-2026/ballots
            {
                "answers": {"0": 1, "1": 0}
            }

        Response (200):
            {
                "access_key": "17:9f86d081884c7d659a2feaa0c55ad015",
                "record_id": 17,
                "amended": false
            }
            Set-Cookie: elections-board-2026-3b5d...=...; HttpOnly; SameSite=Lax

        Response (403):
            {
                "detail": "Voting for this election is unavailable"
            }
    """
    try:
        receipt = submit_ballot(
            db,
            election.id,
            ballot.answers,
            principal,
            access_key=ballot.access_key,
        )
    except ValueError as e:
        raise http_error(e)

    response.set_cookie(
        key=receipt.cookie_name,
        value=receipt.cookie_value,
        max_age=receipt.cookie_max_age,
        httponly=True,
        secure=config.settings.ENVIRONMENT == "production",
        samesite="lax",
    )

    return BallotResponse(
        access_key=receipt.access_key,
        record_id=receipt.record_id,
        amended=receipt.amended,
    )


@router.post("/{pid}/ballots/retrieve", response_model=DecodedBallotResponse)
@limiter.limit(RATE_LIMITS["retrieve"])
async def retrieve_ballot_endpoint(
    request: Request,
    retrieve: RetrieveRequest,
    election: Election = Depends(get_election_or_404),
    db: Session = Depends(get_db)
) -> DecodedBallotResponse:
    """
    Open a previously cast ballot with its access key.

    Unknown records, keys for another election and wrong keys all answer
    with the same 400 "Invalid access key".

    Raises:
        HTTPException: 400 if the access key does not open a ballot of this election
        HTTPException: 403 if the election does not let voters view their ballots

    Rate Limit:
        20 requests per minute per IP
    """
    if not can_view_ballot(election):
        raise HTTPException(status_code=403, detail="Ballots of this election cannot be viewed")

    try:
        decoded = retrieve_ballot(db, retrieve.access_key, election_id=election.id)
    except ValueError as e:
        logger.info(f"Access key rejected (election={election.pid}, client={get_client_ip(request)})")
        raise http_error(e)

    return DecodedBallotResponse(
        record_id=decoded.record_id,
        answers=decoded.answers,
        voted_at=decoded.voted_at,
        can_update=can_update(election),
    )
