"""
tests/conftest.py -- Shared test fixtures for Arena API integration tests.

This module provides:
  - make_settings(): Settings pointing at a throwaway SQLite file
  - api_client: TestClient over a freshly built app, plus an admin token
  - new_user: factory that signs up and signs in a fresh user via the API

Design: each test module gets its own app from create_app() and its own
database file under pytest's tmp_path_factory. A file (not :memory:) is used
because TestClient runs sync route handlers in a thread pool and the three
stores each open their own engine; all of them must see the same schema.

Rate limiting is disabled here; tests/test_rate_limit.py builds its own app
with it switched on.
"""

from __future__ import annotations

import itertools
import os
from collections.abc import Callable, Generator
from pathlib import Path

# Set DEBUG before any core import so a bare get_settings() call can
# auto-generate SECRET_KEY instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from core.config import Settings

TEST_SECRET = "arena-test-signing-key-0123456789abcdef"

_usernames = itertools.count(1)


def make_settings(db_path: Path, **overrides) -> Settings:
    """Settings for an isolated test app backed by db_path."""
    values = {
        "debug": True,
        "secret_key": TEST_SECRET,
        "database_url": f"sqlite:///{db_path}",
        "token_expire_seconds": 3600,
        "rate_limit_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


def signup_and_signin(client: TestClient, username: str, password: str, role: str = "user") -> tuple[int, str]:
    """Create a user through POST /signup and return (user_id, token) from POST /signin."""
    resp = client.post("/api/v1/signup", json={"username": username, "password": password, "type": role})
    assert resp.status_code == 200, resp.text
    user_id = resp.json()["userId"]

    resp = client.post("/api/v1/signin", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return user_id, resp.json()["token"]


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one app and database per test module
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(tmp_path_factory) -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, admin_token, admin_id) for API integration tests.

    The TestClient drives the real lifespan, so stores and the token service
    are built exactly as in production, only against a temporary database.
    """
    db_path = tmp_path_factory.mktemp("arena") / "arena.db"
    app = create_app(make_settings(db_path))

    with TestClient(app, raise_server_exceptions=True) as client:
        admin_id, admin_token = signup_and_signin(client, "testadmin", "adminpass123", role="admin")
        yield client, admin_token, admin_id


@pytest.fixture
def new_user(api_client) -> Callable[..., tuple[int, str]]:
    """Return a factory that registers a uniquely named user: new_user(role="user") -> (user_id, token)."""
    client, _, _ = api_client

    def _make(role: str = "user") -> tuple[int, str]:
        username = f"{role}{next(_usernames)}"
        return signup_and_signin(client, username, "secretpass1", role=role)

    return _make
