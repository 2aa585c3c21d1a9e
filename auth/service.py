"""
auth/service.py -- Registration, login and token verification.

Authenticator is constructed once per AppContext with everything it needs
(user store, signing secret, bcrypt cost, token lifetime, clock). It holds
no per-request state.

Security:
  [timing] login() always runs bcrypt, against a dummy hash when the email is
  unknown, so response time does not reveal whether an account exists.
  [enumeration] unknown email and wrong password raise the same AuthError
  with the same message.

Layer rule: no imports from api/ or mappings/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from auth.models import AuthResult, Identity, User
from auth.store import UserStore
from auth.tokens import (
    MAX_PASSWORD_BYTES,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from core.errors import AuthError, ConflictError, ValidationError

logger = logging.getLogger("datamap.auth")

INVALID_CREDENTIALS = "Invalid email or password."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Authenticator:
    """Verifies credentials and issues / validates bearer tokens."""

    def __init__(
        self,
        users: UserStore,
        secret: str,
        *,
        bcrypt_rounds: int = 12,
        token_expire_seconds: int = 86400,
        password_min_length: int = 6,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.users = users
        self._secret = secret
        self._rounds = bcrypt_rounds
        self._expire_seconds = token_expire_seconds
        self._min_length = password_min_length
        self._clock = clock
        # Same cost as real hashes so the unknown-email path takes as long.
        self._dummy_hash = hash_password("datamap_timing_dummy", bcrypt_rounds)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, email: str | None, password: str | None) -> AuthResult:
        """Create an account and return a token for it.

        Raises ValidationError for missing fields or a password outside the
        allowed length, ConflictError if the email is already registered.
        """
        if not email or not email.strip() or not password:
            raise ValidationError("Email and password are required.")
        if len(password) < self._min_length:
            raise ValidationError(f"Password must be at least {self._min_length} characters long.")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long.")

        # The store also raises ConflictError if a concurrent insert wins the
        # UNIQUE race between this check and create_user().
        if self.users.get_by_email(email) is not None:
            logger.info("Registration rejected: email already registered")
            raise ConflictError("User already exists with this email.")

        user_id = self.users.create_user(User(email=email, hashed_password=hash_password(password, self._rounds)))
        logger.info("Registered user_id=%d", user_id)
        identity = Identity(user_id=user_id, email=email)
        return AuthResult(token=self.issue_token(identity), user=identity)

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, email: str | None, password: str | None) -> AuthResult:
        """Authenticate with email and password.

        Raises AuthError with one indistinguishable message for an unknown
        email and a wrong password.
        """
        if not email or not password:
            raise ValidationError("Email and password are required.")

        user = self.users.get_by_email(email)
        if user is None:
            verify_password(password, self._dummy_hash)
            logger.info("Login failed")
            raise AuthError(INVALID_CREDENTIALS, code="bad_credentials")
        if not verify_password(password, user.hashed_password):
            logger.info("Login failed")
            raise AuthError(INVALID_CREDENTIALS, code="bad_credentials")

        identity = Identity(user_id=user.id, email=user.email)
        logger.info("Login succeeded for user_id=%d", user.id)
        return AuthResult(token=self.issue_token(identity), user=identity)

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def issue_token(self, identity: Identity) -> str:
        return create_access_token(
            identity.user_id,
            identity.email,
            self._secret,
            self._expire_seconds,
            now=self._clock(),
        )

    def verify_token(self, token: str) -> Identity:
        """Return the identity in token. Raises AuthError if invalid or expired."""
        return decode_access_token(token, self._secret, now=self._clock())
