"""Unit tests for auth/tokens.py -- TokenService, bcrypt helpers, authenticate_user.

Covers:
- issue()/verify() carry user_id, username and role
- no exp claim unless expire_seconds > 0
- expired, foreign-key, tampered and malformed tokens raise the right errors
- verify_password() never raises on a malformed hash
- bcrypt input over 72 bytes is refused, never truncated
- authenticate_user() accepts only the right password for an existing user
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.models import User
from auth.store import UserStore
from auth.tokens import (
    InvalidTokenError,
    TokenExpiredError,
    TokenService,
    authenticate_user,
    hash_password,
    verify_password,
)

KEY = "unit-test-signing-key-0123456789abcdef"


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(KEY)


# ---------------------------------------------------------------------------
# TokenService
# ---------------------------------------------------------------------------


class TestTokenService:
    def test_round_trip_claims(self, tokens):
        claims = tokens.verify(tokens.issue(7, "alice", "admin"))
        assert claims["user_id"] == 7
        assert claims["sub"] == "alice"
        assert claims["role"] == "admin"

    def test_no_expiry_by_default(self, tokens):
        claims = jwt.get_unverified_claims(tokens.issue(1, "alice", "user"))
        assert "exp" not in claims

    def test_expiry_when_configured(self):
        service = TokenService(KEY, expire_seconds=60)
        claims = service.verify(service.issue(1, "alice", "user"))
        assert claims["exp"] > claims["iat"]

    def test_expired_token_raises_expired(self, tokens):
        past = datetime.now(timezone.utc) - timedelta(minutes=5)
        token = jwt.encode({"sub": "alice", "user_id": 1, "role": "user", "exp": past}, KEY, algorithm="HS256")
        with pytest.raises(TokenExpiredError):
            tokens.verify(token)

    def test_expired_is_an_invalid_token(self):
        assert issubclass(TokenExpiredError, InvalidTokenError)

    def test_other_key_rejected(self, tokens):
        other = TokenService("a-completely-different-key-for-signing")
        with pytest.raises(InvalidTokenError):
            tokens.verify(other.issue(1, "alice", "admin"))

    def test_tampered_signature_rejected(self, tokens):
        token = tokens.issue(1, "alice", "user")
        tampered = token[:-2] + ("AA" if not token.endswith("AA") else "BB")
        with pytest.raises(InvalidTokenError):
            tokens.verify(tampered)

    @pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b.c", "...", "x" * 500])
    def test_malformed_tokens_rejected(self, tokens, garbage):
        with pytest.raises(InvalidTokenError):
            tokens.verify(garbage)

    def test_missing_identity_claims_rejected(self, tokens):
        token = jwt.encode({"sub": "alice"}, KEY, algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            tokens.verify(token)

    def test_non_integer_user_id_rejected(self, tokens):
        token = jwt.encode({"sub": "alice", "user_id": "1", "role": "user"}, KEY, algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            tokens.verify(token)

    def test_empty_key_refused(self):
        with pytest.raises(ValueError):
            TokenService("")


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


class TestPasswords:
    def test_hash_is_salted(self):
        assert hash_password("hunter2") != hash_password("hunter2")

    def test_verify_matches(self):
        hashed = hash_password("hunter2")
        assert verify_password("hunter2", hashed) is True
        assert verify_password("hunter3", hashed) is False

    def test_malformed_hash_is_false(self):
        assert verify_password("hunter2", "not-a-bcrypt-hash") is False

    def test_hash_refuses_over_72_bytes(self):
        with pytest.raises(ValueError):
            hash_password("x" * 73)

    def test_longer_password_does_not_match_its_prefix(self):
        hashed = hash_password("x" * 72)
        assert verify_password("x" * 72, hashed) is True
        assert verify_password("x" * 80, hashed) is False


# ---------------------------------------------------------------------------
# authenticate_user
# ---------------------------------------------------------------------------


@pytest.fixture
def user_store():
    s = UserStore("sqlite:///:memory:")
    s.create_user(User(username="alice", role="user", hashed_password=hash_password("right-pw")))
    yield s
    s.close()


class TestAuthenticateUser:
    def test_correct_password(self, user_store):
        user = authenticate_user(user_store, "alice", "right-pw")
        assert user is not None
        assert user.username == "alice"

    def test_wrong_password(self, user_store):
        assert authenticate_user(user_store, "alice", "wrong-pw") is None

    def test_unknown_user(self, user_store):
        assert authenticate_user(user_store, "mallory", "right-pw") is None
