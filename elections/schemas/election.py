"""Election schemas."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from elections.core.constants import AnswerSort, ModAllowed
from elections.core.utils import to_utc
from elections.core.sanitization import (
    MAX_ANSWER_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_QUESTION_LENGTH,
    MAX_REMARK_LENGTH,
    MAX_TOPIC_LENGTH,
    sanitize_pid,
    sanitize_required_text,
    sanitize_text,
)


class AnswerCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=MAX_ANSWER_LENGTH)
    remark: str = Field("", max_length=MAX_REMARK_LENGTH)

    @field_validator('text')
    @classmethod
    def sanitize_text_field(cls, v: str) -> str:
        return sanitize_required_text(v, "Answer", MAX_ANSWER_LENGTH)

    @field_validator('remark')
    @classmethod
    def sanitize_remark_field(cls, v: str) -> str:
        return sanitize_text(v, max_length=MAX_REMARK_LENGTH)


class QuestionCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=MAX_QUESTION_LENGTH)
    answer_sort: AnswerSort = AnswerSort.AS_ENTERED
    answers: List[AnswerCreate] = Field(..., min_length=2)

    @field_validator('text')
    @classmethod
    def sanitize_text_field(cls, v: str) -> str:
        return sanitize_required_text(v, "Question", MAX_QUESTION_LENGTH)


class ElectionCreate(BaseModel):
    pid: str = Field(..., min_length=1)
    topic: str = Field(..., min_length=1, max_length=MAX_TOPIC_LENGTH)
    description: str = Field("", max_length=MAX_DESCRIPTION_LENGTH)
    opens: Optional[datetime] = None
    closes: Optional[datetime] = None
    owner_id: Optional[int] = None
    voting_group: Optional[int] = None
    results_group: Optional[int] = None
    hide_results: bool = True
    mod_allowed: ModAllowed = ModAllowed.NONE
    randomize_questions: bool = False
    declares_winner: bool = True
    show_remarks: bool = False
    questions: List[QuestionCreate] = Field(..., min_length=1)

    @field_validator('pid')
    @classmethod
    def sanitize_pid_field(cls, v: str) -> str:
        return sanitize_pid(v)

    @field_validator('topic')
    @classmethod
    def sanitize_topic_field(cls, v: str) -> str:
        return sanitize_required_text(v, "Topic", MAX_TOPIC_LENGTH)

    @field_validator('description')
    @classmethod
    def sanitize_description_field(cls, v: str) -> str:
        return sanitize_text(v, max_length=MAX_DESCRIPTION_LENGTH)

    @model_validator(mode='after')
    def check_window(self):
        if self.opens and self.closes and to_utc(self.closes) < to_utc(self.opens):
            raise ValueError("Closing time must not be before opening time")
        return self


class ElectionCreated(BaseModel):
    election_id: int
    pid: str


class AnswerOption(BaseModel):
    aid: int
    text: str
    remark: Optional[str] = None


class QuestionLayout(BaseModel):
    qid: int
    text: str
    answers: List[AnswerOption]


class ElectionDetail(BaseModel):
    pid: str
    topic: str
    description: str
    opens: datetime
    closes: datetime
    status: str
    is_open: bool
    eligibility: str
    can_vote: bool
    can_update: bool
    can_view_ballot: bool
    can_view_results: bool
    mod_allowed: str
    login_required: bool
    questions: List[QuestionLayout]


class ElectionSummary(BaseModel):
    pid: str
    topic: str
    opens: datetime
    closes: datetime
    is_open: bool
    has_voted: bool
    can_view_results: bool


class EligibilityResponse(BaseModel):
    pid: str
    can_vote: bool
    reason: str
    can_update: bool


class StatusResponse(BaseModel):
    pid: str
    status: str


class VoterEntry(BaseModel):
    id: int
    user_id: Optional[int] = None
    ip_address: str
    voted_at: datetime


class RebuildResponse(BaseModel):
    pid: str
    repaired: int


class MaintenanceResponse(BaseModel):
    archived: int
    ip_addresses_purged: int


class MoveUserRequest(BaseModel):
    from_user_id: int = Field(..., gt=0)
    to_user_id: int = Field(..., gt=0)


class MoveUserResponse(BaseModel):
    elections: int
    ballots: int
