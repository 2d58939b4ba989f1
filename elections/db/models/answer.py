"""Answer model."""
from sqlalchemy import CheckConstraint, Column, ForeignKeyConstraint, Integer, String
from sqlalchemy.orm import relationship

from elections.db.base import Base


class Answer(Base):
    __tablename__ = "answers"

    election_id = Column(Integer, primary_key=True)
    qid = Column(Integer, primary_key=True, autoincrement=False)
    aid = Column(Integer, primary_key=True, autoincrement=False)  # Zero-based position
    text = Column(String(255), nullable=False)
    remark = Column(String(255), nullable=False, default="")
    # Cached counter. The vote ledger is authoritative; see services.tally.
    votes = Column(Integer, nullable=False, default=0)

    # Relationships
    question = relationship("Question", back_populates="answers")

    __table_args__ = (
        ForeignKeyConstraint(
            ["election_id", "qid"],
            ["questions.election_id", "questions.qid"],
            ondelete="CASCADE",
        ),
        CheckConstraint("votes >= 0", name="ck_answer_votes_nonnegative"),
    )
