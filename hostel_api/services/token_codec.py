"""Signing and verification of compact, time-limited tokens (JWT)."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional

import jwt


class TokenVerificationError(Exception):
    """A token failed verification. Deliberately says nothing about why."""


def sign_token(
    payload: Mapping[str, Any],
    secret: str,
    ttl: timedelta,
    *,
    algorithm: str = "HS256",
    now: Optional[datetime] = None,
) -> str:
    """
    Sign a payload into a self-contained token.

    Args:
        payload: Claims to embed; ``iat`` and ``exp`` are added
        secret: Signing secret for this token class
        ttl: Lifetime measured from ``now``
        algorithm: JWT signing algorithm
        now: Issue time, defaults to the current UTC time

    Returns:
        Encoded token string
    """
    issued_at = now or datetime.now(tz=timezone.utc)
    claims: Dict[str, Any] = dict(payload)
    claims["iat"] = issued_at
    claims["exp"] = issued_at + ttl
    return jwt.encode(claims, secret, algorithm=algorithm)


def verify_token(token: Any, secret: str, *, algorithm: str = "HS256") -> Dict[str, Any]:
    """
    Verify signature and expiry and return the embedded claims.

    Raises:
        TokenVerificationError: On any failure (tampered, expired, malformed)
    """
    if not isinstance(token, str) or not token:
        raise TokenVerificationError("token verification failed")
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["exp"]},
        )
    except jwt.InvalidTokenError as exc:
        raise TokenVerificationError("token verification failed") from exc
