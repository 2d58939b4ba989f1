"""Random key tokens for ballots, ledger rows and voter cookies."""
import hashlib
import secrets
from typing import Dict, Tuple

from elections.core.constants import COOKIE_KEY_BYTES, KEY_BYTES, LEDGER_ID_BYTES


def generate_token(nbytes: int = KEY_BYTES) -> str:
    """Generate an unguessable hex token of ``2 * nbytes`` characters."""
    return secrets.token_hex(nbytes)


def generate_key_pair() -> Tuple[str, str]:
    """Mint a fresh ``(public_key, private_key)`` pair for sealing a ballot.

    The private half is handed to the voter once and never stored.
    """
    return generate_token(KEY_BYTES), generate_token(KEY_BYTES)


def generate_ledger_id() -> str:
    """Generate a ledger row id (128 random bits)."""
    return generate_token(LEDGER_ID_BYTES)


def generate_cookie_key() -> str:
    """Generate the rotating secret that scopes the "already voted" cookie."""
    return generate_token(COOKIE_KEY_BYTES)


def hash_selections(answers: Dict[int, int]) -> str:
    """Digest of a ballot's selections, stored in the anonymous voter cookie."""
    joined = "-".join(f"{qid}.{aid}" for qid, aid in sorted(answers.items()))
    return hashlib.sha256(joined.encode()).hexdigest()
