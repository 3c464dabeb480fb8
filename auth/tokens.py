"""
auth/tokens.py -- JWT issuing/verification and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry the user id, username (sub) and
       role. TokenService is constructed once at startup from Settings and
       stored on app.state; nothing in this module reads configuration at
       import time, so tests can build services with their own keys.

  Expiry: TokenService(expire_seconds=0) issues tokens with no exp claim.
       That mirrors the historical behaviour of the service (tokens never
       expire) and is a known limitation -- set TOKEN_EXPIRE_SECONDS to opt in
       to expiring tokens.

  Passwords: bcrypt directly (no passlib wrapper). The _DUMMY_HASH constant
       enables timing equalization in authenticate_user() so response time
       does not reveal whether a username exists.

Layer rule: no imports from api/, catalog/, or spaces/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("arena.auth")

_ALGORITHM = "HS256"

# Fixed cost factor. Not configurable on purpose: stored hashes embed it, and
# verification cost must stay uniform for the timing equalization below.
_BCRYPT_ROUNDS = 12

# bcrypt only reads the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


class InvalidTokenError(Exception):
    """Raised by TokenService.verify() for any token that must not be trusted."""


class TokenExpiredError(InvalidTokenError):
    """Raised by TokenService.verify() when the token's exp claim has passed."""


# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Raises ValueError for passwords over MAX_PASSWORD_BYTES once UTF-8
    encoded; the API layer rejects those before they get here.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password exceeds {MAX_PASSWORD_BYTES} bytes.")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Input over MAX_PASSWORD_BYTES never matches: no stored hash was made from
    it, and bcrypt would otherwise compare only a truncated prefix.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash; treat as a failed comparison.
        return False


# Computed once at module load so the first signin is not measurably slower
# than later ones.
_DUMMY_HASH: str = hash_password("arena_timing_dummy")


# ---------------------------------------------------------------------------
# Token service
# ---------------------------------------------------------------------------


class TokenService:
    """Issues and verifies signed identity tokens.

    Usage:
        tokens = TokenService(settings.secret_key, settings.token_expire_seconds)
        token = tokens.issue(user.id, user.username, user.role)
        claims = tokens.verify(token)   # raises InvalidTokenError
    """

    def __init__(self, secret_key: str, expire_seconds: int = 0) -> None:
        if not secret_key:
            raise ValueError("TokenService requires a non-empty secret key.")
        self._secret_key = secret_key
        self._expire_seconds = expire_seconds

    def issue(self, user_id: int, username: str, role: str) -> str:
        """Encode a signed JWT carrying the caller's identity and role."""
        payload: dict = {
            "sub": username,
            "user_id": user_id,
            "role": role,
            "iat": datetime.now(timezone.utc),
        }
        if self._expire_seconds > 0:
            payload["exp"] = datetime.now(timezone.utc) + timedelta(seconds=self._expire_seconds)
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> dict:
        """Decode and verify a JWT, returning its claims.

        Raises TokenExpiredError for an expired token and InvalidTokenError for
        everything else: bad signature, tampered payload, garbage input, or a
        payload without the identity claims the auth gate needs.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except ExpiredSignatureError as exc:
            raise TokenExpiredError("Token has expired.") from exc
        except (JWTError, AttributeError, TypeError, ValueError) as exc:
            raise InvalidTokenError("Token could not be verified.") from exc
        if not isinstance(payload.get("user_id"), int) or "role" not in payload:
            raise InvalidTokenError("Token is missing identity claims.")
        return payload


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, username: str, password: str) -> User | None:
    """Authenticate a username/password pair with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown username: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure.
    """
    user = store.get_by_username(username)
    if user is None or user.hashed_password is None:
        verify_password(password, _DUMMY_HASH)
        logger.info("Signin rejected: unknown username")
        return None
    if not verify_password(password, user.hashed_password):
        logger.info("Signin rejected: bad password for user_id=%s", user.id)
        return None
    return user
