"""
Access token helpers for the identity_access bounded context.

Why: Keep JWT issuing and validation outside the web adapter so it can be
unit tested independently and the guard stays a thin translation layer.

Security: Tokens are HS256-signed with a shared secret and carry only the
user id, email and role. The guard re-reads the user from the store, so a
token never grants more than the user's current role.
"""
from __future__ import annotations

from typing import Dict
import time

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JOSEError

from .domain import User

ALGORITHM = "HS256"
DEFAULT_TTL_SECONDS = 7 * 24 * 3600
MAX_CLOCK_SKEW_SECONDS = 5  # Allow minimal skew between servers


class AccessTokenError(Exception):
    """Raised when an access token fails verification."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


def issue_access_token(user: User, *, secret: str, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> str:
    """Sign a token for `user` that expires after `ttl_seconds`."""
    now = int(time.time())
    claims = {
        "id": user.id,
        "email": user.email,
        "role": user.role.value,
        "iat": now,
        "exp": now + int(ttl_seconds),
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def decode_access_token(token: str, *, secret: str) -> Dict[str, object]:
    """Validate signature and expiry, returning the claims.

    Raises
    ------
    AccessTokenError:
        `expired` when past `exp`, `invalid_token` for any other failure
        (bad signature, malformed token, missing `id` claim).
    """
    if not token:
        raise AccessTokenError("invalid_token")
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"leeway": MAX_CLOCK_SKEW_SECONDS},
        )
    except ExpiredSignatureError as exc:
        raise AccessTokenError("expired") from exc
    except JOSEError as exc:
        raise AccessTokenError("invalid_token") from exc

    user_id = claims.get("id")
    if not isinstance(user_id, str) or not user_id:
        raise AccessTokenError("invalid_token")
    return claims
