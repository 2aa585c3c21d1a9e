"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services
do the work; these only own the shape.

Layer rule: no imports from api/ or mappings/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    email is compared case-sensitively, exactly as stored. hashed_password is
    a bcrypt hash; the plaintext is never persisted. There is no update or
    delete path for users.
    """

    email: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None  # ISO 8601, set by store on insert


@dataclass(frozen=True)
class Identity:
    """The caller's identity as resolved from a verified bearer token."""

    user_id: int
    email: str


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful register or login: a signed token plus the identity."""

    token: str
    user: Identity
