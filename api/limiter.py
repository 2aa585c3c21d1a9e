"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in api/main.py (to mount as middleware) and in
api/routes/auth.py (to apply per-route limits with @limiter.limit()).

Using a single shared instance ensures all routes share the same in-memory
counter store. If this were instantiated in each module separately, each
module would get its own isolated counter.

The credential routes take their limit from Settings.login_rate_limit.
slowapi limit callables receive no request, so create_app() pushes the
configured value in through configure_limits() and auth_rate_limit() reads
it back on every request.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

DEFAULT_AUTH_LIMIT = "10/minute"

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")

_auth_limit = DEFAULT_AUTH_LIMIT


def configure_limits(auth_limit: str) -> None:
    """Set the limit applied to /api/auth/login and /api/auth/register."""
    global _auth_limit
    _auth_limit = auth_limit


def auth_rate_limit() -> str:
    return _auth_limit
