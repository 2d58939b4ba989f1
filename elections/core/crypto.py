"""Ballot sealing.

A ballot is sealed with a symmetric key derived from the voter's private
key and the record's public key (``private:public``). Only the public half
is stored, so neither the site nor its administrators can open a ballot
without the key the voter was given.

Key derivation uses PBKDF2-HMAC-SHA256 salted with the public key; the
derived key drives a Fernet token (AES-CBC plus HMAC-SHA256). Fernet is
authenticated, so a wrong key or tampered payload is rejected outright
instead of decrypting to garbage.

Usage:
    cipher = BallotCipher(private_key, public_key)
    token = cipher.seal({"0": 1, "1": 0})
    cipher.unseal(token)  # {"0": 1, "1": 0}
"""
import base64
import json
from typing import Any, Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from elections.core import config
from elections.core.exceptions import KeyMismatch


def derive_key(private_key: str, public_key: str, iterations: Optional[int] = None) -> bytes:
    """Derive the urlsafe-base64 Fernet key for a key pair."""
    if iterations is None:
        iterations = config.settings.KEY_DERIVATION_ITERATIONS
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=public_key.encode(),
        iterations=iterations,
    )
    key = kdf.derive(f"{private_key}:{public_key}".encode())
    return base64.urlsafe_b64encode(key)


class BallotCipher:
    """Seal and unseal JSON payloads for one key pair."""

    def __init__(self, private_key: str, public_key: str, iterations: Optional[int] = None):
        if not private_key or not public_key:
            raise KeyMismatch()
        self._fernet = Fernet(derive_key(private_key, public_key, iterations))

    def seal(self, payload: Any) -> str:
        """Serialize ``payload`` compactly and encrypt it."""
        data = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        return self._fernet.encrypt(data.encode()).decode("ascii")

    def unseal(self, token: Optional[str]) -> Any:
        """Decrypt and deserialize a sealed payload.

        Raises:
            KeyMismatch: wrong key, tampered or corrupt data. The cases are
                deliberately indistinguishable.
        """
        if not token:
            raise KeyMismatch()
        try:
            data = self._fernet.decrypt(token.encode("ascii"))
            return json.loads(data)
        except (InvalidToken, ValueError):
            raise KeyMismatch()
