"""Identity issuance and admin key checks for the connection layer."""

from __future__ import annotations

import hashlib
import hmac
import secrets


IDENTITY_BYTES = 12


def generate_identity() -> str:
    """Issue an opaque, URL-safe identity for a new connection."""
    return secrets.token_urlsafe(IDENTITY_BYTES)


def hash_key(key: str) -> str:
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def verify_admin_key(raw_key: str | None, expected_key: str | None) -> bool:
    """Accept anything when no admin key is configured."""
    if expected_key is None:
        return True
    if not raw_key:
        return False
    return hmac.compare_digest(hash_key(raw_key), hash_key(expected_key))
