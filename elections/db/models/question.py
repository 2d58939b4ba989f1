"""Question model."""
from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from elections.db.base import Base
from elections.core.constants import AnswerSort


class Question(Base):
    __tablename__ = "questions"

    election_id = Column(Integer, ForeignKey("elections.id", ondelete="CASCADE"), primary_key=True)
    qid = Column(Integer, primary_key=True, autoincrement=False)  # Zero-based position
    text = Column(String(255), nullable=False)
    answer_sort = Column(Integer, nullable=False, default=AnswerSort.AS_ENTERED)

    # Relationships
    election = relationship("Election", back_populates="questions")
    answers = relationship(
        "Answer", back_populates="question", cascade="all, delete-orphan",
        order_by="Answer.aid",
    )
