"""Public election endpoints."""
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from elections.api.deps import get_db, get_election_or_404, get_principal
from elections.core.principal import Principal
from elections.core.rate_limit import limiter, RATE_LIMITS
from elections.db.models import Election
from elections.schemas import ElectionDetail, ElectionSummary, EligibilityResponse, ResultsResponse
from elections.services.elections import get_election_detail, list_elections
from elections.services.eligibility import Eligibility, can_update, can_view_results, check_vote_eligibility
from elections.services.tally import get_results

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=List[ElectionSummary])
@limiter.limit(RATE_LIMITS["public_read"])
async def list_elections_endpoint(
    request: Request,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db)
):
    """
    List elections the requester can vote in or see results for.

    Archived elections are not listed. ``has_voted`` reflects the same
    "already voted" check used when a ballot is submitted.
    """
    return list_elections(db, principal)


@router.get("/{pid}", response_model=ElectionDetail)
@limiter.limit(RATE_LIMITS["public_read"])
async def get_election_endpoint(
    request: Request,
    election: Election = Depends(get_election_or_404),
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db)
):
    """
    Get an election with its ballot laid out for display.

    Questions are shuffled when the election randomizes them and answers are
    ordered according to each question's sort setting.

    Example:
        Response (200):
            {
                "pid": "board-2026",
                "topic": "Board election",
                "is_open": true,
                "eligibility": "allowed",
                "can_vote": true,
                "questions": [
                    {"qid": 0, "text": "Chair", "answers": [{"aid": 0, "text": "Alice"}, ...]}
                ],
                ...
            }
    """
    return get_election_detail(db, election, principal)


@router.get("/{pid}/eligibility", response_model=EligibilityResponse)
@limiter.limit(RATE_LIMITS["public_read"])
async def get_eligibility_endpoint(
    request: Request,
    election: Election = Depends(get_election_or_404),
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db)
):
    """
    Whether the requester may cast a ballot now, and why not if they can't.

    ``reason`` is one of ``allowed``, ``not_open``, ``not_in_group`` or
    ``already_voted``.
    """
    eligibility = check_vote_eligibility(db, election, principal)
    return EligibilityResponse(
        pid=election.pid,
        can_vote=eligibility is Eligibility.ALLOWED,
        reason=eligibility.value,
        can_update=can_update(election),
    )


@router.get("/{pid}/results", response_model=ResultsResponse)
@limiter.limit(RATE_LIMITS["public_read"])
async def get_results_endpoint(
    request: Request,
    election: Election = Depends(get_election_or_404),
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db)
):
    """
    Get the tabulated results of an election.

    Raises:
        HTTPException: 403 if the requester may not see the results yet
        HTTPException: 404 if the election does not exist
    """
    if not can_view_results(election, principal):
        logger.info(f"Results withheld (election={election.pid}, user_id={principal.user_id})")
        raise HTTPException(status_code=403, detail="Results are not available")
    return get_results(db, election)
