# faq/tools.py
"""
Utility helpers for the FAQ service.
This module provides the clock used for every expiry comparison, the
one-way hash used to fingerprint addresses, time-ordered identifiers for
session tokens, and the signed JWT assertion used by the spreadsheet backend.
"""

import hashlib
import hmac
import secrets
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

import jwt

JWT_LIFETIME = 1800  # seconds


class Clock:
    """UTC wall clock. Tests substitute a subclass that can be advanced."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def after(self, minutes: int | float = 0) -> datetime:
        return self.now() + timedelta(minutes=minutes)


def sha256(value: str, key: Optional[bytes] = None) -> str:
    """Hex digest of `value`, keyed with HMAC when `key` is given."""
    if key:
        return hmac.new(key, value.encode(), "sha256").hexdigest()
    return hashlib.sha256(value.encode()).hexdigest()


def uuid_from_timestamp() -> str:
    # 8 bytes of nanosecond timestamp followed by 8 random bytes
    raw = bytearray(time.time_ns().to_bytes(8, "big") + secrets.token_bytes(8))
    raw[6] = (raw[6] & 0x0F) | 0x10
    raw[8] = (raw[8] & 0x3F) | 0x80
    return str(uuid.UUID(bytes=bytes(raw)))


def jwt_assertion(
    issuer: str,
    scope: str,
    audience: str,
    private_key: str,
    issued_at: Optional[datetime] = None,
) -> str:
    """Build an RS256-signed assertion for the OAuth2 JWT-bearer grant."""
    issued_at = issued_at or datetime.now(timezone.utc)
    iat = int(issued_at.timestamp())
    payload = {
        "iss": issuer,
        "scope": scope,
        "aud": audience,
        "iat": iat,
        "exp": iat + JWT_LIFETIME,
    }
    return jwt.encode(payload, private_key, algorithm="RS256", headers={"typ": "JWT"})


def extract_integer(params: Mapping[str, str], name: str) -> int:
    """Read an integer form field, falling back to 0."""
    try:
        return max(int(params.get(name, "")), 0)
    except (TypeError, ValueError):
        return 0
