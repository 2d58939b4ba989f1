"""Ballot schemas."""
from datetime import datetime
from typing import Dict, Optional
from pydantic import BaseModel, Field, field_validator

from elections.core.sanitization import MAX_ACCESS_KEY_LENGTH


def _strip_key(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


class BallotRequest(BaseModel):
    """Selections as ``{question number: answer number}``."""
    answers: Dict[int, int] = Field(..., min_length=1)
    access_key: Optional[str] = Field(None, max_length=MAX_ACCESS_KEY_LENGTH)

    @field_validator('access_key')
    @classmethod
    def strip_access_key(cls, v: Optional[str]) -> Optional[str]:
        return _strip_key(v)


class BallotResponse(BaseModel):
    access_key: str
    record_id: int
    amended: bool


class RetrieveRequest(BaseModel):
    access_key: str = Field(..., min_length=1, max_length=MAX_ACCESS_KEY_LENGTH)

    @field_validator('access_key')
    @classmethod
    def strip_access_key(cls, v: str) -> str:
        return v.strip()


class DecodedBallotResponse(BaseModel):
    record_id: int
    answers: Dict[int, int]
    voted_at: datetime
    can_update: bool
