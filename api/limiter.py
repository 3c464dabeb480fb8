"""
api/limiter.py -- slowapi rate limiter factory.

create_app() builds one Limiter per application and stores it on
app.state.limiter, where SlowAPIMiddleware looks for it. The same instance is
handed to the router builders in api/routes/v1/ that apply per-route limits
with @limiter.limit(), so every app owns its own enabled flag and in-memory
counters.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Per client IP, applied to POST /signup and POST /signin.
AUTH_RATE_LIMIT = "30/minute"


def build_limiter(enabled: bool = True) -> Limiter:
    return Limiter(key_func=get_remote_address, storage_uri="memory://", enabled=enabled)
