"""Election lookup, lifecycle and administration."""
import random
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from elections.core.config import settings
from elections.core.constants import (
    CLOSES_MAX, OPENS_MIN, AnswerSort, Groups, ModAllowed, Status,
)
from elections.core.exceptions import ElectionArchived, ElectionNotFound, StorageError
from elections.core.logging_config import get_logger
from elections.core.principal import Principal
from elections.core.keys import generate_cookie_key
from elections.core.utils import to_utc, utcnow
from elections.db.models import Answer, Election, Question
from elections.services import ledger, registry, tally
from elections.services.eligibility import (
    already_voted,
    can_update,
    can_view_ballot,
    can_view_results,
    check_vote_eligibility,
    is_mutable,
    is_open_for_voting,
)

logger = get_logger(__name__)


def get_election(db: Session, pid: str) -> Optional[Election]:
    """Get an election by its slug."""
    return (
        db.query(Election)
        .options(selectinload(Election.questions).selectinload(Question.answers))
        .filter(Election.pid == pid)
        .first()
    )


def require_election(db: Session, pid: str) -> Election:
    """Get an election by its slug or raise ``ElectionNotFound``."""
    election = get_election(db, pid)
    if election is None:
        raise ElectionNotFound(pid)
    return election


def create_election(
    db: Session,
    pid: str,
    topic: str,
    questions: Sequence[Dict],
    description: str = "",
    opens: Optional[datetime] = None,
    closes: Optional[datetime] = None,
    owner_id: Optional[int] = None,
    voting_group: Optional[int] = None,
    results_group: Optional[int] = None,
    hide_results: bool = True,
    mod_allowed: int = ModAllowed.NONE,
    randomize_questions: bool = False,
    declares_winner: bool = True,
    show_remarks: bool = False,
) -> Election:
    """
    Create an election together with its questions and answers.

    Questions are dicts with ``text``, optional ``answer_sort`` and
    ``answers``; answers are dicts with ``text`` and optional ``remark``.
    Positions (``qid``/``aid``) follow list order, starting at zero.

    Raises:
        ValueError: Duplicate slug, bad window, or question/answer counts
            outside the configured limits
    """
    opens_utc = to_utc(opens) if opens else OPENS_MIN
    closes_utc = to_utc(closes) if closes else CLOSES_MAX
    if closes_utc < opens_utc:
        raise ValueError("Closing time must not be before opening time")

    if not questions:
        raise ValueError("An election needs at least one question")
    if len(questions) > settings.MAX_QUESTIONS:
        raise ValueError(f"An election can have at most {settings.MAX_QUESTIONS} questions")
    for q in questions:
        if len(q.get("answers") or []) < 2:
            raise ValueError("Each question needs at least two answers")
        if len(q["answers"]) > settings.MAX_ANSWERS:
            raise ValueError(f"A question can have at most {settings.MAX_ANSWERS} answers")

    if db.query(Election.id).filter(Election.pid == pid).first() is not None:
        raise ValueError("Election with this ID already exists")

    election = Election(
        pid=pid,
        topic=topic,
        description=description,
        opens=opens_utc,
        closes=closes_utc,
        owner_id=owner_id,
        voting_group=voting_group if voting_group is not None else settings.DEFAULT_VOTING_GROUP,
        results_group=results_group if results_group is not None else settings.DEFAULT_RESULTS_GROUP,
        hide_results=hide_results,
        mod_allowed=int(mod_allowed),
        randomize_questions=randomize_questions,
        declares_winner=declares_winner,
        show_remarks=show_remarks,
        status=Status.OPEN,
    )
    for qid, q in enumerate(questions):
        question = Question(
            qid=qid,
            text=q["text"],
            answer_sort=int(q.get("answer_sort", AnswerSort.AS_ENTERED)),
        )
        for aid, a in enumerate(q["answers"]):
            question.answers.append(Answer(aid=aid, text=a["text"], remark=a.get("remark") or "", votes=0))
        election.questions.append(question)

    try:
        db.add(election)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("Election with this ID already exists")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("storage_error", operation="create_election", pid=pid, error=str(e))
        raise StorageError("create_election") from e

    db.refresh(election)
    logger.info("election_created", election_id=election.id, pid=pid, questions=len(questions))
    return election


def delete_election(db: Session, pid: str) -> bool:
    """Delete an election with its questions, answers, voters and ledger rows."""
    election = db.query(Election).filter(Election.pid == pid).first()
    if not election:
        return False

    election_id = election.id
    try:
        ledger.delete_election_votes(db, election_id)
        registry.delete_election_voters(db, election_id)
        db.delete(election)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("storage_error", operation="delete_election", election_id=election_id, error=str(e))
        raise StorageError("delete_election") from e

    logger.info("election_deleted", election_id=election_id, pid=pid)
    return True


def reset_election(db: Session, pid: str) -> Election:
    """
    Discard every ballot of an election.

    Clears the ledger and the voter registry, zeroes the tallies and
    rotates the cookie key so earlier "already voted" cookies no longer
    count. Resetting twice leaves the same empty state.

    Raises:
        ElectionNotFound: No such election
        ElectionArchived: Archived elections are read-only
        StorageError: The reset was rolled back
    """
    election = require_election(db, pid)
    if not is_mutable(election):
        raise ElectionArchived(pid)

    election_id = election.id
    try:
        ledger.delete_election_votes(db, election_id)
        registry.delete_election_voters(db, election_id)
        tally.reset(db, election_id)
        election.cookie_key = generate_cookie_key()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("storage_error", operation="reset_election", election_id=election_id, error=str(e))
        raise StorageError("reset_election") from e

    db.refresh(election)
    logger.info("election_reset", election_id=election_id, pid=pid)
    return election


def toggle_status(db: Session, pid: str) -> Status:
    """
    Flip an election between OPEN and CLOSED.

    Raises:
        ElectionNotFound: No such election
        ElectionArchived: Archived elections cannot be reopened
        StorageError: The change was rolled back
    """
    election = require_election(db, pid)
    if not is_mutable(election):
        raise ElectionArchived(pid)

    election_id = election.id
    new_status = Status.CLOSED if election.status == Status.OPEN else Status.OPEN
    try:
        election.status = new_status
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("storage_error", operation="toggle_status", election_id=election_id, error=str(e))
        raise StorageError("toggle_status") from e

    logger.info("election_status_changed", election_id=election_id, status=new_status.name)
    return new_status


def archive_election(db: Session, pid: str) -> Election:
    """Move an election to the terminal ARCHIVED state. Idempotent."""
    election = require_election(db, pid)
    if election.status == Status.ARCHIVED:
        return election

    election_id = election.id
    try:
        election.status = Status.ARCHIVED
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("storage_error", operation="archive_election", election_id=election_id, error=str(e))
        raise StorageError("archive_election") from e

    logger.info("election_archived", election_id=election_id, pid=pid)
    return election


def list_elections(db: Session, principal: Principal, now: Optional[datetime] = None) -> List[Dict]:
    """
    Elections the principal can vote in or see results for.

    Archived elections are left out.
    """
    now = now or utcnow()
    elections = (
        db.query(Election)
        .filter(Election.status != Status.ARCHIVED)
        .order_by(Election.created_at.desc(), Election.id.desc())
        .all()
    )

    result = []
    for election in elections:
        may_vote = principal.in_group(election.voting_group)
        may_view = can_view_results(election, principal, now)
        if not (may_vote or may_view):
            continue
        result.append({
            "pid": election.pid,
            "topic": election.topic,
            "opens": election.opens,
            "closes": election.closes,
            "is_open": is_open_for_voting(election, now),
            "has_voted": already_voted(db, election, principal),
            "can_view_results": may_view,
        })
    return result


def get_election_detail(
    db: Session,
    election: Election,
    principal: Principal,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> Dict:
    """
    The election as a voter sees it, with the ballot laid out for display.

    Question order is shuffled when the election randomizes questions;
    answers follow their question's ``answer_sort``.
    """
    now = now or utcnow()
    rng = rng or random.Random()
    eligibility = check_vote_eligibility(db, election, principal, now)

    counts = None
    questions = []
    for question in election.questions:
        answers = list(question.answers)
        sort = AnswerSort(question.answer_sort)
        if sort == AnswerSort.RANDOM:
            rng.shuffle(answers)
        elif sort == AnswerSort.ALPHABETICAL:
            answers.sort(key=lambda a: a.text.casefold())
        elif sort == AnswerSort.BY_VOTE_COUNT:
            if counts is None:
                counts = ledger.count_votes(db, election.id)
            answers.sort(key=lambda a: (-counts.get((question.qid, a.aid), 0), a.aid))

        questions.append({
            "qid": question.qid,
            "text": question.text,
            "answers": [
                {
                    "aid": a.aid,
                    "text": a.text,
                    "remark": a.remark if election.show_remarks else None,
                }
                for a in answers
            ],
        })

    if election.randomize_questions:
        rng.shuffle(questions)

    return {
        "pid": election.pid,
        "topic": election.topic,
        "description": election.description,
        "opens": election.opens,
        "closes": election.closes,
        "status": Status(election.status).name,
        "is_open": is_open_for_voting(election, now),
        "eligibility": eligibility.value,
        "can_vote": eligibility.value == "allowed",
        "can_update": can_update(election, now),
        "can_view_ballot": can_view_ballot(election),
        "can_view_results": can_view_results(election, principal, now),
        "mod_allowed": ModAllowed(election.mod_allowed).name,
        "login_required": election.voting_group != Groups.ALL_USERS,
        "questions": questions,
    }


def list_voters(db: Session, pid: str) -> List[Dict]:
    """Who voted and when, for administrators. Ballot contents stay sealed."""
    election = require_election(db, pid)
    return [
        {
            "id": voter.id,
            "user_id": voter.user_id,
            "ip_address": voter.ip_address,
            "voted_at": voter.voted_at,
        }
        for voter in registry.list_voters(db, election.id)
    ]


def move_user(db: Session, from_user_id: int, to_user_id: int) -> Dict[str, int]:
    """
    Reassign a user's elections and ballots to another account, as when
    the host site merges two accounts.

    Raises:
        ValueError: Source and destination are the same account
        StorageError: The move was rolled back
    """
    if from_user_id == to_user_id:
        raise ValueError("Cannot move a user onto itself")

    try:
        owned = db.query(Election).filter(Election.owner_id == from_user_id).update(
            {Election.owner_id: to_user_id}, synchronize_session=False
        )
        ballots = registry.move_user(db, from_user_id, to_user_id)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("storage_error", operation="move_user", error=str(e))
        raise StorageError("move_user") from e

    logger.info("user_moved", from_user_id=from_user_id, to_user_id=to_user_id, elections=owned, ballots=ballots)
    return {"elections": owned, "ballots": ballots}


def rebuild_tallies(db: Session, pid: str) -> int:
    """Recount the cached answer counters from the ledger."""
    election = require_election(db, pid)
    try:
        drifted = tally.rebuild(db, election.id)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("storage_error", operation="rebuild_tallies", pid=pid, error=str(e))
        raise StorageError("rebuild_tallies") from e

    if drifted:
        logger.warning("tally_drift_repaired", pid=pid, answers=drifted)
    return drifted


def archive_expired_elections(db: Session, days: int, now: Optional[datetime] = None) -> int:
    """Archive elections whose voting window closed more than ``days`` ago."""
    now = now or utcnow()
    cutoff = now - timedelta(days=days)
    expired = (
        db.query(Election)
        .filter(Election.status != Status.ARCHIVED, Election.closes < cutoff)
        .all()
    )
    for election in expired:
        election.status = Status.ARCHIVED
    return len(expired)


def run_maintenance(db: Session, now: Optional[datetime] = None) -> Dict[str, int]:
    """Archive long-closed elections and blank stale voter IP addresses."""
    now = now or utcnow()
    try:
        archived = archive_expired_elections(db, settings.ARCHIVE_AFTER_DAYS, now)
        purged = registry.purge_ip_addresses(db, timedelta(seconds=settings.IP_RETENTION_SECONDS), now)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("storage_error", operation="run_maintenance", error=str(e))
        raise StorageError("run_maintenance") from e

    logger.info("maintenance_completed", archived=archived, ip_addresses_purged=purged)
    return {"archived": archived, "ip_addresses_purged": purged}
