"""
api/main.py -- FastAPI application factory for DataMap.

create_app() builds the app around an explicitly constructed AppContext
(store handle + signing secret + authenticator). Pass a context to reuse
one (the test suite does); otherwise the lifespan builds one from
Settings at startup and disposes it at shutdown.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter
  4. log_requests          -- one access log line per request
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from api.limiter import configure_limits, limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.data_mappings import router as data_mappings_router
from context import AppContext
from core.config import Settings, get_settings
from core.database import ping
from core.errors import AppError, InternalError

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("datamap.api")


def _error_response(status_code: int, code: str, message: str, detail: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


def create_app(context: Optional[AppContext] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the DataMap ASGI app.

    Args:
        context:  A ready AppContext. The app uses it as-is and does not
                  close it on shutdown -- the caller owns it.
        settings: Used when no context is given. Defaults to get_settings().
    """
    if context is not None:
        settings = context.settings
    elif settings is None:
        settings = get_settings()

    # -----------------------------------------------------------------------
    # Lifespan
    # -----------------------------------------------------------------------

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("DataMap API starting up")
        owned = context is None
        app.state.context = context if context is not None else AppContext.from_settings(settings)
        yield
        if owned:
            app.state.context.close()
        logger.info("DataMap API shutdown complete")

    app = FastAPI(
        title="DataMap API",
        description="Per-user data mapping records behind bearer-token authentication.",
        version=VERSION,
        lifespan=lifespan,
    )

    # -----------------------------------------------------------------------
    # Middleware stack
    #
    # add_middleware() wraps the existing stack, so the LAST one added is the
    # outermost. Register innermost first: SlowAPI -> CORS -> TrustedHost.
    # -----------------------------------------------------------------------

    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

    # SlowAPI looks for app.state.limiter by convention.
    app.state.limiter = limiter
    configure_limits(settings.login_rate_limit)

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
    # Routers
    # -----------------------------------------------------------------------

    app.include_router(auth_router, prefix="/api", tags=["Auth"])
    app.include_router(data_mappings_router, prefix="/api", tags=["Data Mappings"])

    # -----------------------------------------------------------------------
    # Exception handlers
    #
    # All handlers return the same ErrorResponse envelope so API clients can
    # parse errors uniformly without inspecting status codes to choose a schema.
    # -----------------------------------------------------------------------

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if isinstance(exc, InternalError):
            logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc.message)
            return _error_response(500, exc.code, "An unexpected error occurred.")
        return _error_response(exc.status_code, exc.code, exc.message)

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        """Return 429 with Retry-After when a rate limit is exceeded."""
        retry_after = int(getattr(exc, "retry_after", 60))
        response = _error_response(429, "rate_limited", "Too many requests.", detail=str(exc.detail))
        response.headers["Retry-After"] = str(retry_after)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed bodies and bad path/query params are client input errors: 400."""
        # Drop "input" so rejected values (passwords included) are not echoed back.
        errors = [{k: v for k, v in e.items() if k != "input"} for e in exc.errors()]
        return _error_response(400, "validation_error", "Request validation failed.", detail=str(errors))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Unknown routes (404), wrong methods (405) and any explicit HTTPException."""
        return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected server errors, including storage failures.

        The raw exception goes to the server log only, never to the response
        body. The client receives only a generic message.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _error_response(500, "internal_error", "An unexpected error occurred.")

    # -----------------------------------------------------------------------
    # Health
    #
    # No auth and no rate limit -- load balancers must not be throttled.
    # -----------------------------------------------------------------------

    @app.get("/api/health", response_model=HealthResponse, tags=["Health"])
    def health(request: Request) -> HealthResponse:
        """Return liveness, version and database status."""
        try:
            db_status = "ok" if ping(request.app.state.context.engine) else "error"
        except SQLAlchemyError:
            logger.exception("Health check database ping failed")
            db_status = "error"
        return HealthResponse(
            status="ok" if db_status == "ok" else "degraded",
            version=VERSION,
            timestamp=datetime.now(timezone.utc).isoformat(),
            components={"app": "ok", "database": db_status},
        )

    return app
