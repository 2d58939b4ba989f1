"""Response bodies shared by all endpoints."""
from pydantic import BaseModel
from typing import Optional


class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    """Body of unexpected server-side failures.

    Only a stable code and a generic message go out; the ``request_id``
    lets an operator find the logged detail.
    """
    success: bool = False
    error: ErrorDetail
    request_id: Optional[str] = None

    @classmethod
    def storage_fault(cls, request_id: Optional[str] = None) -> "ErrorResponse":
        return cls(
            error=ErrorDetail(code="storage_error", message="Error recording data"),
            request_id=request_id,
        )
