"""Administrator login schema."""
from pydantic import BaseModel, Field

# Argon2 verification cost grows with input length
PASSWORD_MAX_LENGTH = 256


class AdminLoginRequest(BaseModel):
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LENGTH)
