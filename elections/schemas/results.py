"""Results schemas."""
from typing import List, Optional
from pydantic import BaseModel


class AnswerResult(BaseModel):
    aid: int
    text: str
    remark: Optional[str] = None
    votes: int
    percent: float
    winner: bool


class QuestionResult(BaseModel):
    qid: int
    text: str
    total_votes: int
    answers: List[AnswerResult]


class ResultsResponse(BaseModel):
    pid: str
    topic: str
    is_open: bool
    total_votes: int
    questions: List[QuestionResult]
