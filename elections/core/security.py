"""Security and authentication utilities."""
import secrets
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Tuple
import argon2
import jwt
from fastapi import HTTPException, Request

from elections.core import config

# Argon2 hasher for the admin password
ph = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=65536,
    parallelism=1,
    hash_len=32,
    salt_len=16
)


def get_password_hash(password: str) -> str:
    """Hash a password using Argon2."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its Argon2 hash."""
    try:
        ph.verify(password_hash, password)
        return True
    except argon2.exceptions.VerifyMismatchError:
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=config.settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, config.settings.SECRET_KEY, algorithm=config.settings.ALGORITHM)
    return encoded_jwt


def create_user_token(user_id: int, groups: Iterable[int] = (),
                      expires_delta: Optional[timedelta] = None) -> str:
    """Issue a voter identity token the way the host site does.

    ``sub`` carries the user id and ``groups`` the group memberships that
    the eligibility checks consult.
    """
    return create_access_token(
        {"sub": str(user_id), "groups": sorted(set(groups))},
        expires_delta=expires_delta,
    )


def decode_user_token(token: str) -> Tuple[int, frozenset]:
    """Decode a voter identity token into ``(user_id, groups)``.

    Raises:
        HTTPException: 401 if the token is expired, forged or malformed
    """
    try:
        payload = jwt.decode(token, config.settings.SECRET_KEY, algorithms=[config.settings.ALGORITHM])
        user_id = int(payload["sub"])
        groups = frozenset(int(g) for g in payload.get("groups", []))
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except (jwt.PyJWTError, KeyError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")
    return user_id, groups


def verify_admin_token(request: Request) -> dict:
    """Verify JWT token from cookie and return payload."""
    token = request.cookies.get("admin_token")

    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = jwt.decode(token, config.settings.SECRET_KEY, algorithms=[config.settings.ALGORITHM])
        if not payload.get("is_admin"):
            raise HTTPException(status_code=403, detail="Not authorized")
        return payload
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")


def verify_admin_password(password: str) -> bool:
    """Verify admin password using Argon2.

    Supports both hashed passwords (starting with $argon2) and plaintext.
    If ADMIN_PASSWORD is hashed (recommended), verifies using Argon2.
    If ADMIN_PASSWORD is plaintext (legacy/dev), does direct comparison.
    """
    stored_password = config.settings.ADMIN_PASSWORD

    if stored_password.startswith("$argon2"):
        return verify_password(password, stored_password)
    else:
        return secrets.compare_digest(password, stored_password)
