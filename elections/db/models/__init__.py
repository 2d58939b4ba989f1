"""Database models."""
from elections.db.models.election import Election
from elections.db.models.question import Question
from elections.db.models.answer import Answer
from elections.db.models.voter import Voter
from elections.db.models.vote import Vote

__all__ = ["Election", "Question", "Answer", "Voter", "Vote"]
