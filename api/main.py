"""
api/main.py -- FastAPI application factory for the Arena API.

Run with:  uvicorn asgi:app --reload
           python main.py --port 3000

create_app(settings) builds a fully wired application. Everything that used to
be process-global -- the signing key, the database handles -- is constructed
from the Settings object inside the lifespan and hung off app.state, so tests
can build as many isolated apps as they like.

Middleware (Starlette wraps the last-registered outermost):
  log_requests       -- one log line per request with latency
  SlowAPIMiddleware  -- enforces rate limits with this app's own Limiter
  CORSMiddleware     -- adds CORS headers for allowed browser origins

Lifespan handles startup (stores, token service) and shutdown (dispose
engines) symmetrically.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from api.limiter import build_limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.admin import router as admin_router
from api.routes.v1.auth import SIGNIN_PATH
from api.routes.v1.auth import build_router as build_auth_router
from api.routes.v1.catalog import router as catalog_router
from api.routes.v1.spaces import router as spaces_router
from api.routes.v1.users import router as users_router
from auth.store import UserStore
from auth.tokens import TokenService
from catalog.store import CatalogStore
from core.config import Settings, get_settings
from spaces.store import SpaceStore

API_VERSION = "0.1.0"
API_PREFIX = "/api/v1"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("arena.api")


def _error_response(status_code: int, code: str, message: str, detail: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the Arena API application.

    settings defaults to the process-wide get_settings() singleton. Tests pass
    their own Settings (temporary database, rate limiting off).
    """
    settings = settings or get_settings()

    # -----------------------------------------------------------------------
    # Lifespan
    # -----------------------------------------------------------------------

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Construct the token service and stores on startup; dispose on shutdown.

        Stores share one database URL but each owns its engine and pool.
        """
        logger.info("Arena API starting up")
        app.state.settings = settings
        app.state.tokens = TokenService(settings.secret_key, settings.token_expire_seconds)
        if settings.token_expire_seconds == 0:
            logger.warning("Tokens are issued without an expiry (TOKEN_EXPIRE_SECONDS=0)")
        app.state.user_store = UserStore(settings.database_url)
        app.state.catalog = CatalogStore(settings.database_url)
        app.state.spaces = SpaceStore(settings.database_url)
        logger.info("Stores initialized")

        yield

        app.state.spaces.close()
        app.state.catalog.close()
        app.state.user_store.close()
        logger.info("Arena API shutdown complete")

    app = FastAPI(
        title="Arena API",
        description="Virtual space backend: users, catalog (avatars, elements, maps) and spaces.",
        version=API_VERSION,
        lifespan=lifespan,
    )

    # -----------------------------------------------------------------------
    # Middleware stack
    # -----------------------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )

    app.add_middleware(SlowAPIMiddleware)

    # One Limiter per app: its enabled flag and counters are not shared with
    # any other app in the process. SlowAPI looks for app.state.limiter.
    limiter = build_limiter(enabled=settings.rate_limit_enabled)
    app.state.limiter = limiter

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms %s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            request.client.host if request.client else "unknown",
        )
        return response

    # -----------------------------------------------------------------------
    # Router registration
    # -----------------------------------------------------------------------

    app.include_router(build_auth_router(limiter), prefix=API_PREFIX, tags=["Auth"])
    app.include_router(catalog_router, prefix=API_PREFIX, tags=["Catalog"])
    app.include_router(admin_router, prefix=API_PREFIX, tags=["Admin"])
    app.include_router(users_router, prefix=API_PREFIX, tags=["Users"])
    app.include_router(spaces_router, prefix=API_PREFIX, tags=["Spaces"])

    # -----------------------------------------------------------------------
    # Exception handlers
    #
    # All handlers return the same ErrorResponse envelope.
    # -----------------------------------------------------------------------

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        """Return 429 with Retry-After when a rate limit is exceeded."""
        retry_after = int(getattr(exc, "retry_after", 60))
        response = _error_response(429, "rate_limited", "Too many requests.", detail=str(exc))
        response.headers["Retry-After"] = str(retry_after)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed or missing input is a 400, not FastAPI's default 422.

        Signin is the exception: whatever is wrong with the body, the answer is
        the same 403 bad_credentials as a wrong password.
        """
        if request.url.path == f"{API_PREFIX}{SIGNIN_PATH}":
            return _error_response(403, "bad_credentials", "Invalid username or password.")
        return _error_response(400, "validation_error", "Request validation failed.", detail=str(exc.errors()))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Return a structured error for all FastAPI/Starlette HTTP exceptions.

        Route handlers raise HTTPException with an ErrorDetail dict (see
        api.errors.api_error). A dict detail is used as the error field as-is;
        anything else (e.g. Starlette's own 404/405) is wrapped.
        """
        if isinstance(exc.detail, dict):
            return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
        return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected server errors.

        The raw exception is logged, never echoed to the client.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _error_response(500, "internal_error", "An unexpected error occurred.")

    # -----------------------------------------------------------------------
    # Health endpoint
    #
    # Defined here rather than in a router so it is reachable regardless of
    # router registration. Not rate limited.
    # -----------------------------------------------------------------------

    @app.get(f"{API_PREFIX}/health", tags=["Health"])
    def health(request: Request) -> HealthResponse:
        """Return liveness plus a database round-trip check."""
        try:
            request.app.state.user_store.ping()
            request.app.state.catalog.ping()
            request.app.state.spaces.ping()
            database = "ok"
        except SQLAlchemyError:
            logger.exception("Health check database ping failed")
            database = "error"
        return HealthResponse(
            status="healthy" if database == "ok" else "degraded",
            version=API_VERSION,
            components={"app": "ok", "database": database},
        )

    return app
