"""Voter registry model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from elections.db.base import Base


class Voter(Base):
    """One row per submitted ballot.

    ``vote_data`` and ``vote_records`` are sealed with a key derived from the
    voter's private key, which is never stored here.
    """

    __tablename__ = "voters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    election_id = Column(Integer, ForeignKey("elections.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, nullable=True)  # NULL for anonymous voters
    ip_address = Column(String(45), nullable=False, default="")
    voted_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))
    vote_data = Column(Text, nullable=False)
    vote_records = Column(Text, nullable=False)
    public_key = Column(String(64), nullable=False)

    # Relationships
    election = relationship("Election", back_populates="voters")

    __table_args__ = (
        Index("idx_voters_election", "election_id"),
        Index("idx_voters_election_ip", "election_id", "ip_address"),
        # NULL user ids never collide, so anonymous ballots are unaffected
        UniqueConstraint("election_id", "user_id", name="uq_election_user"),
    )
