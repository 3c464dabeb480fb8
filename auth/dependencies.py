"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Callers authenticate with an "Authorization: Bearer <token>" header carrying a
JWT issued by POST /signin. The token is verified by the TokenService on
app.state and the identity is re-read from the UserStore, so a token naming a
user id that no longer exists is rejected.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises HTTP 401 if unauthenticated.
require_admin() wraps get_current_user() and raises HTTP 403 if not admin.
require_owner() is the ownership predicate for user-owned resources.

Layer rule: no imports from catalog/ or spaces/.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from auth.models import User
from auth.tokens import InvalidTokenError, TokenExpiredError

logger = logging.getLogger("arena.auth")


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def try_get_current_user(request: Request) -> User | None:
    """Attempt to authenticate the request via its Bearer token.

    Returns the authenticated User on success, None on any failure.
    Never raises -- callers that need a hard 401 should use get_current_user().
    """
    token = _bearer_token(request)
    if token is None:
        return None

    try:
        claims = request.app.state.tokens.verify(token)
    except TokenExpiredError:
        logger.info("Rejected expired token")
        return None
    except InvalidTokenError:
        logger.info("Rejected invalid token")
        return None

    user = request.app.state.user_store.get_by_id(claims["user_id"])
    if user is None:
        return None
    return user


def get_current_user(request: Request) -> User:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return user


def require_admin(request: Request) -> User:
    """Require admin role. Raises HTTP 401 if unauthenticated, HTTP 403 if not admin."""
    user = get_current_user(request)
    if not user.is_admin:
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "Admin access required."},
        )
    return user


def require_owner(user: User, owner_id: int) -> None:
    """Raise HTTP 403 unless user owns the resource identified by owner_id."""
    if user.id != owner_id:
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "You do not own this resource."},
        )
