"""
Password hashing and session token utilities.

Responsibilities:
- Hash passwords as hex SHA-256 over ``<salt>:<password>`` so existing
  registration rows keep verifying
- Generate 16-character alphanumeric salts
- Verify hashes with constant-time comparison
- Issue 64-character hex session tokens for single-device enforcement
"""
from __future__ import annotations

import hashlib
import hmac
import secrets
import string

SALT_LENGTH = 16
SALT_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits


def hash_password(password: str, salt: str) -> str:
    """Return the hex SHA-256 digest of ``salt:password``."""
    payload = f"{salt}:{password}".encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def generate_salt(length: int = SALT_LENGTH) -> str:
    return "".join(secrets.choice(SALT_ALPHABET) for _ in range(length))


def verify_password(password: str, salt: str, stored_hash: str) -> bool:
    if not stored_hash:
        return False
    candidate = hash_password(password, salt or "")
    return hmac.compare_digest(candidate, str(stored_hash))


def generate_session_token() -> str:
    """Return a 64-character hex token (256 bits of entropy)."""
    return secrets.token_hex(32)
