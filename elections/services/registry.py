"""Voter registry queries and writes."""
from datetime import datetime, timedelta
from typing import List, Optional
from sqlalchemy.orm import Session

from elections.db.models import Voter


def get_voter(db: Session, voter_id: int, for_update: bool = False) -> Optional[Voter]:
    """Load a registry row. ``for_update`` locks it and reloads a cached copy."""
    query = db.query(Voter).filter(Voter.id == voter_id)
    if for_update:
        query = query.with_for_update().populate_existing()
    return query.first()


def has_user_voted(db: Session, election_id: int, user_id: int) -> bool:
    return db.query(Voter.id).filter(
        Voter.election_id == election_id,
        Voter.user_id == user_id,
    ).first() is not None


def has_ip_voted(db: Session, election_id: int, ip_address: str) -> bool:
    """Best-effort anonymous check. Shared and NATed addresses give false positives."""
    if not ip_address:
        return False
    return db.query(Voter.id).filter(
        Voter.election_id == election_id,
        Voter.ip_address == ip_address,
    ).first() is not None


def add_voter(
    db: Session,
    election_id: int,
    user_id: Optional[int],
    ip_address: str,
    public_key: str,
    vote_data: str,
    vote_records: str,
    voted_at: datetime,
) -> Voter:
    """Insert a registry row and flush to obtain its id. Does not commit."""
    voter = Voter(
        election_id=election_id,
        user_id=user_id,
        ip_address=ip_address or "",
        public_key=public_key,
        vote_data=vote_data,
        vote_records=vote_records,
        voted_at=voted_at,
    )
    db.add(voter)
    db.flush()
    return voter


def reseal_voter(
    db: Session,
    voter: Voter,
    expected_public_key: str,
    public_key: str,
    vote_data: str,
    vote_records: str,
    voted_at: datetime,
) -> bool:
    """
    Replace the sealed payloads of an existing row in place. Does not commit.

    The row is only written while it still carries ``expected_public_key``.
    Returns False when another submission resealed it first.
    """
    updated = db.query(Voter).filter(
        Voter.id == voter.id,
        Voter.public_key == expected_public_key,
    ).update(
        {
            Voter.public_key: public_key,
            Voter.vote_data: vote_data,
            Voter.vote_records: vote_records,
            Voter.voted_at: voted_at,
        },
        synchronize_session="fetch",
    )
    return updated == 1


def delete_election_voters(db: Session, election_id: int) -> int:
    """Remove every registry row of an election. Does not commit."""
    return db.query(Voter).filter(Voter.election_id == election_id).delete(synchronize_session=False)


def list_voters(db: Session, election_id: int) -> List[Voter]:
    """Registry rows for the admin voter list, newest first."""
    return (
        db.query(Voter)
        .filter(Voter.election_id == election_id)
        .order_by(Voter.voted_at.desc(), Voter.id.desc())
        .all()
    )


def purge_ip_addresses(db: Session, older_than: timedelta, now: datetime) -> int:
    """Blank stored IP addresses of ballots older than ``older_than``. Does not commit."""
    cutoff = now - older_than
    return db.query(Voter).filter(
        Voter.voted_at < cutoff,
        Voter.ip_address != "",
    ).update({Voter.ip_address: ""}, synchronize_session=False)


def move_user(db: Session, from_user_id: int, to_user_id: int) -> int:
    """
    Hand the ballots of one user account over to another. Does not commit.

    Elections in which the destination account already voted keep both
    ballots apart; only the source account's other rows move.
    """
    taken = db.query(Voter.election_id).filter(Voter.user_id == to_user_id)
    return db.query(Voter).filter(
        Voter.user_id == from_user_id,
        Voter.election_id.notin_(taken.scalar_subquery()),
    ).update({Voter.user_id: to_user_id}, synchronize_session=False)
