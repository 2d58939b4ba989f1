"""Pydantic schemas for request/response validation."""
from elections.schemas.auth import AdminLoginRequest
from elections.schemas.ballot import (
    BallotRequest,
    BallotResponse,
    DecodedBallotResponse,
    RetrieveRequest,
)
from elections.schemas.election import (
    AnswerCreate,
    ElectionCreate,
    ElectionCreated,
    ElectionDetail,
    ElectionSummary,
    EligibilityResponse,
    MaintenanceResponse,
    MoveUserRequest,
    MoveUserResponse,
    QuestionCreate,
    RebuildResponse,
    StatusResponse,
    VoterEntry,
)
from elections.schemas.results import ResultsResponse
from elections.schemas.common import SuccessResponse, ErrorResponse, ErrorDetail

__all__ = [
    "AdminLoginRequest",
    "BallotRequest",
    "BallotResponse",
    "DecodedBallotResponse",
    "RetrieveRequest",
    "AnswerCreate",
    "ElectionCreate",
    "ElectionCreated",
    "ElectionDetail",
    "ElectionSummary",
    "EligibilityResponse",
    "MaintenanceResponse",
    "MoveUserRequest",
    "MoveUserResponse",
    "QuestionCreate",
    "RebuildResponse",
    "StatusResponse",
    "VoterEntry",
    "ResultsResponse",
    "SuccessResponse",
    "ErrorResponse",
    "ErrorDetail",
]
