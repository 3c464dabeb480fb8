"""
api/routes/v1/auth.py -- Signup and signin endpoints.

Routes:
  POST /api/v1/signup   -- create a user; returns {userId}
  POST /api/v1/signin   -- exchange username/password for a bearer token

The router is built per application by build_router(limiter), so the rate
limits are enforced by that app's own Limiter.

Security:
  Both routes are rate-limited per client IP.
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_username() + verify_password().
  Every signin failure, including a body that does not validate, is the same
  403 bad_credentials response (api/main.py maps validation errors on
  SIGNIN_PATH), so the endpoint does not reveal which usernames exist.
  Cache-Control: no-store on signin responses.
"""

import logging

from fastapi import APIRouter, Request, Response
from slowapi import Limiter
from sqlalchemy.exc import IntegrityError

from api.errors import api_error
from api.limiter import AUTH_RATE_LIMIT
from api.models import SigninRequest, SigninResponse, SignupRequest, SignupResponse
from auth.models import User
from auth.store import UserStore
from auth.tokens import TokenService, authenticate_user, hash_password

logger = logging.getLogger("arena.auth")

SIGNIN_PATH = "/signin"


def _bad_credentials():
    return api_error(403, "bad_credentials", "Invalid username or password.")


def build_router(limiter: Limiter) -> APIRouter:
    """Return the auth router with its rate limits bound to limiter.

    Auth policy:
    - POST /api/v1/signup: public
    - POST /api/v1/signin: public
    """
    router = APIRouter()

    # @router.post must wrap @limiter.limit: SlowAPIMiddleware skips decorated
    # routes, so the registered endpoint has to be the rate-limited wrapper.

    @router.post("/signup", response_model=SignupResponse)
    @limiter.limit(AUTH_RATE_LIMIT)
    def signup(request: Request, body: SignupRequest) -> SignupResponse:
        """Register a new user with role "admin" or "user" (the request's "type").

        The password is bcrypt-hashed exactly as sent. A duplicate username
        trips the store's UNIQUE constraint and is reported as 400.
        """
        user_store: UserStore = request.app.state.user_store
        new_user = User(
            username=body.username,
            role=body.role.value,
            hashed_password=hash_password(body.password),
        )
        try:
            user_id = user_store.create_user(new_user)
        except IntegrityError as exc:
            raise api_error(400, "conflict", "A user with that username already exists.") from exc

        logger.info("Signed up user_id=%s role=%s", user_id, new_user.role)
        return SignupResponse(user_id=user_id)

    @router.post(SIGNIN_PATH, response_model=SigninResponse)
    @limiter.limit(AUTH_RATE_LIMIT)
    def signin(request: Request, response: Response, body: SigninRequest) -> SigninResponse:
        """Authenticate with username and password; return a signed token.

        Missing fields, unknown usernames and wrong passwords all return the
        same 403 bad_credentials error.
        """
        if not body.username or not body.password:
            raise _bad_credentials()

        user_store: UserStore = request.app.state.user_store
        user = authenticate_user(user_store, body.username, body.password)
        if user is None:
            raise _bad_credentials()

        tokens: TokenService = request.app.state.tokens
        token = tokens.issue(user.id, user.username, user.role)
        response.headers["Cache-Control"] = "no-store"
        return SigninResponse(token=token)

    return router
