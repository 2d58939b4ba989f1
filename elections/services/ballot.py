"""Ballot submission and retrieval.

A submission writes the ledger rows, the sealed voter record and the tally
counters in one transaction. The voter receives ``<record id>:<private
key>``; the private key is never stored, so that string is the only way to
open or amend the ballot later.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from elections.core.config import settings
from elections.core.crypto import BallotCipher
from elections.core.exceptions import (
    BallotConflict,
    BallotValidationError,
    ElectionNotFound,
    EligibilityDenied,
    KeyMismatch,
    StorageError,
)
from elections.core.logging_config import get_logger
from elections.core.principal import Principal
from elections.core.sanitization import parse_access_key
from elections.core.keys import generate_key_pair, hash_selections
from elections.core.utils import utcnow
from elections.db.models import Election, Voter
from elections.services import ledger, registry, tally
from elections.services.eligibility import (
    Eligibility,
    can_update,
    check_vote_eligibility,
    vote_cookie_name,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class BallotReceipt:
    """What the voter gets back after a successful submission."""

    record_id: int
    private_key: str
    amended: bool
    cookie_name: str
    cookie_value: str
    cookie_max_age: int

    @property
    def access_key(self) -> str:
        return f"{self.record_id}:{self.private_key}"


@dataclass(frozen=True)
class DecodedBallot:
    record_id: int
    election_id: int
    answers: Dict[int, int]
    voted_at: datetime


def validate_ballot(election: Election, answers: Dict[int, int]) -> Dict[int, int]:
    """
    Check that a ballot answers every question with a real answer.

    Returns:
        The ballot with integer keys and values

    Raises:
        BallotValidationError: Missing, unknown or out-of-range selections
    """
    choices = {q.qid: {a.aid for a in q.answers} for q in election.questions}
    if not choices:
        raise BallotValidationError("Election has no questions")

    try:
        ballot = {int(qid): int(aid) for qid, aid in answers.items()}
    except (AttributeError, TypeError, ValueError):
        raise BallotValidationError("Ballot must map question numbers to answer numbers")

    unknown = set(ballot) - set(choices)
    if unknown:
        raise BallotValidationError(f"Unknown question: {min(unknown)}")

    if set(choices) - set(ballot):
        raise BallotValidationError("Please answer all remaining questions")

    for qid, aid in ballot.items():
        if aid not in choices[qid]:
            raise BallotValidationError(f"Invalid answer for question {qid}")

    return ballot


def _load_voter(db: Session, access_key: str, for_update: bool = False) -> Tuple[Voter, str]:
    try:
        record_id, private_key = parse_access_key(access_key)
    except ValueError:
        raise KeyMismatch()

    voter = registry.get_voter(db, record_id, for_update=for_update)
    if voter is None:
        raise KeyMismatch()
    return voter, private_key


def _open_voter(voter: Voter, private_key: str) -> Tuple[Dict[int, int], List[str]]:
    """Unseal a voter record into its answer map and ledger ids."""
    cipher = BallotCipher(private_key, voter.public_key)
    data = cipher.unseal(voter.vote_data)
    records = cipher.unseal(voter.vote_records)
    try:
        answers = {int(qid): int(aid) for qid, aid in data.items()}
        vote_ids = [str(vote_id) for vote_id in records]
    except (AttributeError, TypeError, ValueError):
        raise KeyMismatch()
    return answers, vote_ids


def _abandon_amendment(db: Session, election_id: int, record_id: int) -> None:
    """Another submission replaced this ballot after it was read."""
    db.rollback()
    logger.warning("ballot_amend_conflict", election_id=election_id, record_id=record_id)
    raise BallotConflict("This ballot was changed by another request")


def retrieve_ballot(db: Session, access_key: str, election_id: Optional[int] = None) -> DecodedBallot:
    """
    Open a previously cast ballot with the voter's access key.

    Args:
        db: Database session
        access_key: ``<record id>:<private key>`` as handed to the voter
        election_id: If given, the record must belong to this election

    Raises:
        KeyMismatch: Unknown record, wrong election, wrong key or corrupt
            data. All look the same to the caller.
    """
    voter, private_key = _load_voter(db, access_key)
    if election_id is not None and voter.election_id != election_id:
        raise KeyMismatch()

    answers, _ = _open_voter(voter, private_key)
    return DecodedBallot(
        record_id=voter.id,
        election_id=voter.election_id,
        answers=answers,
        voted_at=voter.voted_at,
    )


def submit_ballot(
    db: Session,
    election_id: int,
    answers: Dict[int, int],
    principal: Principal,
    access_key: Optional[str] = None,
    now: Optional[datetime] = None,
) -> BallotReceipt:
    """
    Record a new ballot, or amend one when ``access_key`` is supplied.

    New ballots need ``can_vote``; amendments need ``can_update`` and the
    key of the ballot being replaced. Either way a fresh key pair is minted,
    so any previously issued key stops working.

    Ledger rows, the voter record and the tally counters are written in a
    single transaction that is rolled back as a whole on failure.

    Raises:
        ElectionNotFound: No such election
        BallotValidationError: Incomplete or invalid selections
        EligibilityDenied: The principal may not vote (or amend) now
        KeyMismatch: Amendment key does not open a ballot of this election
        BallotConflict: A concurrent request already recorded this user's ballot
        StorageError: Any other database failure
    """
    election = db.query(Election).filter(Election.id == election_id).first()
    if election is None:
        raise ElectionNotFound(election_id)

    ballot = validate_ballot(election, answers)
    now = now or utcnow()

    voter = None
    previous_answers: Dict[int, int] = {}
    previous_ids: List[str] = []
    if access_key:
        if not can_update(election, now):
            raise EligibilityDenied(Eligibility.CANNOT_UPDATE, "This ballot can no longer be changed")
        # Row lock held until commit; a second amendment with the same key waits here
        voter, old_private_key = _load_voter(db, access_key, for_update=True)
        if voter.election_id != election.id:
            raise KeyMismatch()
        previous_answers, previous_ids = _open_voter(voter, old_private_key)
        previous_public_key = voter.public_key
    else:
        eligibility = check_vote_eligibility(db, election, principal, now)
        if eligibility is not Eligibility.ALLOWED:
            raise EligibilityDenied(eligibility)

    public_key, private_key = generate_key_pair()
    cipher = BallotCipher(private_key, public_key)
    amended = voter is not None
    cookie_name = vote_cookie_name(election)
    eid = election.id

    try:
        if ledger.delete_votes(db, previous_ids) != len(previous_ids):
            _abandon_amendment(db, eid, voter.id)
        vote_ids = ledger.record_votes(db, election.id, ballot)

        vote_data = cipher.seal({str(qid): aid for qid, aid in ballot.items()})
        vote_records = cipher.seal(vote_ids)

        if voter is not None:
            resealed = registry.reseal_voter(
                db, voter, previous_public_key, public_key, vote_data, vote_records, now,
            )
            if not resealed:
                _abandon_amendment(db, eid, voter.id)
        else:
            voter = registry.add_voter(
                db,
                election_id=election.id,
                user_id=principal.user_id,
                ip_address=principal.ip_address,
                public_key=public_key,
                vote_data=vote_data,
                vote_records=vote_records,
                voted_at=now,
            )

        for qid, aid in previous_answers.items():
            tally.decrement(db, election.id, qid, aid)
        for qid, aid in ballot.items():
            tally.increment(db, election.id, qid, aid)

        record_id = voter.id
        db.commit()
    except IntegrityError as e:
        db.rollback()
        message = str(e)
        # The (election_id, user_id) unique constraint blocks concurrent double submits
        if "uq_election_user" in message or "voters.user_id" in message:
            logger.warning("ballot_conflict", election_id=eid, user_id=principal.user_id)
            raise BallotConflict()
        logger.error("storage_error", operation="submit_ballot", election_id=eid, error=message)
        raise StorageError("submit_ballot") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("storage_error", operation="submit_ballot", election_id=eid, error=str(e))
        raise StorageError("submit_ballot") from e

    logger.info(
        "ballot_amended" if amended else "ballot_recorded",
        election_id=eid,
        record_id=record_id,
        questions=len(ballot),
    )

    return BallotReceipt(
        record_id=record_id,
        private_key=private_key,
        amended=amended,
        cookie_name=cookie_name,
        cookie_value=hash_selections(ballot),
        cookie_max_age=settings.VOTE_COOKIE_TTL_SECONDS,
    )
