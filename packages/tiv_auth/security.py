from __future__ import annotations

import secrets
from datetime import datetime, timedelta

from passlib.context import CryptContext

from packages.tiv_core.time import utc_now

pwd_context: CryptContext = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a plaintext password.

    Args:
        password: plaintext password.

    Returns:
        str: pbkdf2_sha256 hash string.
    """
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Compare a plaintext password against a stored hash.

    Malformed hashes count as a mismatch.
    """
    try:
        return pwd_context.verify(password, password_hash)
    except (ValueError, TypeError):
        return False


def new_token() -> str:
    """Random login token.

    Returns:
        str: 64 character hex token.
    """
    return secrets.token_hex(32)


def token_expiry(ttl_minutes: int, now: datetime | None = None) -> datetime:
    """Token expiry time.

    Args:
        ttl_minutes: token lifetime.
        now: reference time (defaults to utc now).

    Returns:
        datetime: expiry time (UTC).
    """
    base = now or utc_now()
    return base + timedelta(minutes=ttl_minutes)
