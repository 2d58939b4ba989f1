"""Shared API dependencies."""
from typing import Optional
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from elections.db import get_db
from elections.core.config import settings
from elections.core.principal import Principal
from elections.core.rate_limit import get_client_ip
from elections.core.security import decode_user_token, verify_admin_token
from elections.db.models import Election
from elections.services.elections import require_election


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


def get_principal(request: Request) -> Principal:
    """
    Build the requester's identity from the host-issued user token.

    The token is read from the user token cookie or an ``Authorization:
    Bearer`` header. Without one the requester is anonymous; a present but
    invalid token is rejected with 401.
    """
    token = request.cookies.get(settings.USER_TOKEN_COOKIE) or _bearer_token(request)

    user_id = None
    groups = frozenset()
    if token:
        user_id, groups = decode_user_token(token)

    return Principal(
        user_id=user_id,
        groups=groups,
        ip_address=get_client_ip(request) or "",
        cookies=dict(request.cookies),
    )


def get_election_or_404(pid: str, db: Session = Depends(get_db)) -> Election:
    """Resolve the ``{pid}`` path parameter to an election."""
    try:
        return require_election(db, pid.lower())
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


__all__ = [
    "get_db",
    "get_election_or_404",
    "get_principal",
    "verify_admin_token",
]
