"""Answer tallies and results.

Each answer row keeps a ``votes`` counter. The counter is a cache of the
ledger: it is only changed by atomic SQL updates inside the ballot
transaction and can be rebuilt from the ledger at any time. Results shown
to users are always counted live from the ledger.
"""
from typing import Dict, List, Optional
from datetime import datetime
from sqlalchemy.orm import Session

from elections.db.models import Answer, Election, Voter
from elections.services.ledger import count_votes
from elections.services.eligibility import is_open_for_voting


def increment(db: Session, election_id: int, qid: int, aid: int) -> None:
    """Add one vote to an answer's counter. Does not commit."""
    db.query(Answer).filter(
        Answer.election_id == election_id,
        Answer.qid == qid,
        Answer.aid == aid,
    ).update({Answer.votes: Answer.votes + 1}, synchronize_session=False)


def decrement(db: Session, election_id: int, qid: int, aid: int) -> None:
    """Remove one vote from an answer's counter, never going below zero.

    Does not commit.
    """
    db.query(Answer).filter(
        Answer.election_id == election_id,
        Answer.qid == qid,
        Answer.aid == aid,
        Answer.votes > 0,
    ).update({Answer.votes: Answer.votes - 1}, synchronize_session=False)


def reset(db: Session, election_id: int) -> None:
    """Zero every counter of an election. Does not commit."""
    db.query(Answer).filter(Answer.election_id == election_id).update(
        {Answer.votes: 0}, synchronize_session=False
    )


def rebuild(db: Session, election_id: int) -> int:
    """
    Rewrite the cached counters from the ledger. Does not commit.

    Returns:
        Number of answers whose counter had drifted
    """
    counts = count_votes(db, election_id)
    drifted = 0
    answers = db.query(Answer).filter(Answer.election_id == election_id).all()
    for answer in answers:
        actual = counts.get((answer.qid, answer.aid), 0)
        if answer.votes != actual:
            answer.votes = actual
            drifted += 1
    return drifted


def count_ballots(db: Session, election_id: int) -> int:
    """Number of ballots cast in an election."""
    return db.query(Voter).filter(Voter.election_id == election_id).count()


def get_results(db: Session, election: Election, now: Optional[datetime] = None) -> Dict:
    """
    Tabulate an election from the ledger.

    Answers are ordered by vote count (then position). A question's winners
    are flagged only when the election declares winners and is no longer
    open for voting; ties all win.

    Args:
        db: Database session
        election: Election to tabulate
        now: Reference time for the open check, defaults to now

    Returns:
        Dict with ``total_votes`` (ballots cast), ``is_open`` and
        ``questions``, each carrying its answers with ``votes`` and
        ``percent`` of that question's votes.
    """
    counts = count_votes(db, election.id)
    is_open = is_open_for_voting(election, now)

    questions: List[Dict] = []
    for question in election.questions:
        answers = []
        for answer in question.answers:
            answers.append({
                "aid": answer.aid,
                "text": answer.text,
                "remark": answer.remark if election.show_remarks else None,
                "votes": counts.get((question.qid, answer.aid), 0),
            })

        question_total = sum(a["votes"] for a in answers)
        top = max((a["votes"] for a in answers), default=0)
        declare = election.declares_winner and not is_open and question_total > 0

        for a in answers:
            a["percent"] = round(a["votes"] * 100 / question_total, 2) if question_total else 0.0
            a["winner"] = declare and a["votes"] == top

        answers.sort(key=lambda a: (-a["votes"], a["aid"]))
        questions.append({
            "qid": question.qid,
            "text": question.text,
            "total_votes": question_total,
            "answers": answers,
        })

    return {
        "pid": election.pid,
        "topic": election.topic,
        "is_open": is_open,
        "total_votes": count_ballots(db, election.id),
        "questions": questions,
    }
