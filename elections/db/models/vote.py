"""Vote ledger model."""
from sqlalchemy import Column, Integer, String, ForeignKey, Index
from sqlalchemy.orm import relationship

from elections.db.base import Base


class Vote(Base):
    """An anonymous (question, answer) vote unit.

    Nothing links a row to its voter except the sealed id list on the
    voter record.
    """

    __tablename__ = "votes"

    id = Column(String(32), primary_key=True)
    election_id = Column(Integer, ForeignKey("elections.id", ondelete="CASCADE"), nullable=False)
    qid = Column(Integer, nullable=False)
    aid = Column(Integer, nullable=False)

    # Relationships
    election = relationship("Election", back_populates="votes")

    __table_args__ = (
        Index("idx_votes_election_answer", "election_id", "qid", "aid"),
    )
