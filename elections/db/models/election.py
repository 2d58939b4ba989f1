"""Election model."""
from datetime import datetime, timezone as tz
from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, Integer, String, Text,
)
from sqlalchemy.orm import relationship

from elections.db.base import Base
from elections.core.constants import (
    CLOSES_MAX, OPENS_MIN, PID_MAX_LENGTH, Groups, ModAllowed, Status,
)
from elections.core.keys import generate_cookie_key


class Election(Base):
    __tablename__ = "elections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pid = Column(String(PID_MAX_LENGTH), unique=True, nullable=False, index=True)
    topic = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))
    opens = Column(DateTime(timezone=True), nullable=False, default=OPENS_MIN)
    closes = Column(DateTime(timezone=True), nullable=False, default=CLOSES_MAX)
    status = Column(Integer, nullable=False, default=Status.OPEN)
    hide_results = Column(Boolean, nullable=False, default=True)
    owner_id = Column(Integer, nullable=True)
    voting_group = Column(Integer, nullable=False, default=Groups.ALL_USERS)
    results_group = Column(Integer, nullable=False, default=Groups.ALL_USERS)
    mod_allowed = Column(Integer, nullable=False, default=ModAllowed.NONE)
    randomize_questions = Column(Boolean, nullable=False, default=False)
    declares_winner = Column(Boolean, nullable=False, default=True)
    show_remarks = Column(Boolean, nullable=False, default=False)
    # Rotated on every reset so outstanding "already voted" cookies stop matching
    cookie_key = Column(String(32), nullable=False, default=generate_cookie_key)

    # Relationships
    questions = relationship(
        "Question", back_populates="election", cascade="all, delete-orphan",
        order_by="Question.qid",
    )
    voters = relationship("Voter", back_populates="election", cascade="all, delete-orphan")
    votes = relationship("Vote", back_populates="election", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("closes >= opens", name="ck_election_window"),
        CheckConstraint(
            f"status IN ({Status.OPEN}, {Status.CLOSED}, {Status.ARCHIVED})",
            name="ck_election_status",
        ),
    )

    def __repr__(self):
        return f"<Election {self.pid} status={self.status}>"
