"""Vote ledger.

Append-only anonymous rows, one per answered question. Rows are only ever
inserted by ballot submission and removed in bulk (ballot amendment,
election reset); there is no update path.
"""
from typing import Dict, Iterable, List, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session

from elections.db.models import Vote
from elections.core.keys import generate_ledger_id


def record_votes(db: Session, election_id: int, answers: Dict[int, int]) -> List[str]:
    """
    Add one ledger row per ``qid -> aid`` pair.

    Does not commit; the caller owns the transaction.

    Returns:
        The freshly generated ledger ids, in question order
    """
    ids = []
    for qid, aid in sorted(answers.items()):
        vote_id = generate_ledger_id()
        db.add(Vote(id=vote_id, election_id=election_id, qid=qid, aid=aid))
        ids.append(vote_id)
    return ids


def delete_votes(db: Session, vote_ids: Iterable[str]) -> int:
    """Bulk-delete ledger rows by id. Does not commit."""
    vote_ids = list(vote_ids)
    if not vote_ids:
        return 0
    return db.query(Vote).filter(Vote.id.in_(vote_ids)).delete(synchronize_session=False)


def delete_election_votes(db: Session, election_id: int) -> int:
    """Remove every ledger row of an election. Does not commit."""
    return db.query(Vote).filter(Vote.election_id == election_id).delete(synchronize_session=False)


def count_votes(db: Session, election_id: int) -> Dict[Tuple[int, int], int]:
    """
    Count ledger rows grouped by ``(qid, aid)``.

    Returns:
        Dict mapping (qid, aid) -> number of ballots choosing that answer.
        Answers nobody picked are absent.
    """
    rows = (
        db.query(Vote.qid, Vote.aid, func.count())
        .filter(Vote.election_id == election_id)
        .group_by(Vote.qid, Vote.aid)
        .all()
    )
    return {(qid, aid): count for qid, aid, count in rows}
