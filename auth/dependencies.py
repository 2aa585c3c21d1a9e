"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

get_current_identity() is the authorization guard. It is attached
router-wide to every owned-resource route, so a handler cannot forget it.

Only one auth method exists: `Authorization: Bearer <token>`. There are no
cookies and no server-side sessions; every request is authenticated on its
own from the token's signature and expiry.

The Authenticator is looked up on request.app.state.context, which
create_app() sets. This module never builds one itself.

Layer rule: no imports from api/ or mappings/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import Identity
from auth.service import Authenticator
from core.errors import AuthError


def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.context.authenticator


def _bearer_token(request: Request) -> str | None:
    """Return the token from an `Authorization: Bearer <token>` header, if any."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_identity(request: Request) -> Identity:
    """Require a valid bearer token. Raises AuthError (401) otherwise.

    On success the identity is also stored on request.state.identity for
    middleware and logging.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_current_identity)): ...
    """
    token = _bearer_token(request)
    if token is None:
        raise AuthError("Authentication required.")
    identity = get_authenticator(request).verify_token(token)
    request.state.identity = identity
    return identity
