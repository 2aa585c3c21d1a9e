"""
api/routes/auth.py -- Registration, login and profile endpoints.

Routes:
  POST /api/auth/register  -- create account; 201 {message, token, user}
  POST /api/auth/login     -- password login; 200 {message, token, user}
  GET  /api/profile        -- identity behind the bearer token (requires auth)

Security:
  Login and register are rate-limited per client IP.
  Unknown email and wrong password share one error code and message.
  Cache-Control: no-store on every response that carries a token.

Handlers are plain `def`: bcrypt is CPU-bound, so FastAPI runs them in its
threadpool instead of blocking the event loop.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import auth_rate_limit, limiter
from api.models import AuthResponse, CredentialsRequest, ProfileResponse, UserInfo
from auth.dependencies import get_authenticator, get_current_identity
from auth.models import AuthResult, Identity

# Auth policy:
# - POST /api/auth/register: public
# - POST /api/auth/login:    public
# - GET  /api/profile:       requires auth (get_current_identity)
router = APIRouter()


def _token_response(status_code: int, message: str, result: AuthResult) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(
            message=message,
            token=result.token,
            user=UserInfo.from_identity(result.user),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
@limiter.limit(auth_rate_limit)
def register(request: Request, body: CredentialsRequest) -> JSONResponse:
    """Create an account and return a bearer token for it.

    400 validation_error for missing fields or a bad password length,
    400 conflict when the email is already registered.
    """
    result = get_authenticator(request).register(body.email, body.password)
    return _token_response(201, "User registered successfully.", result)


@router.post("/auth/login", response_model=AuthResponse)
@limiter.limit(auth_rate_limit)  # brute-force mitigation
def login(request: Request, body: CredentialsRequest) -> JSONResponse:
    """Authenticate with email and password and return a bearer token.

    Returns the same 401 bad_credentials error for an unknown email and a
    wrong password.
    """
    result = get_authenticator(request).login(body.email, body.password)
    return _token_response(200, "Login successful.", result)


@router.get("/profile", response_model=ProfileResponse)
def profile(identity: Identity = Depends(get_current_identity)) -> ProfileResponse:
    """Return the identity carried by the caller's token."""
    return ProfileResponse(user=UserInfo.from_identity(identity))
