"""
auth/tokens.py -- JWT and password hashing primitives.

Everything here is a pure function of its arguments: the signing secret,
the bcrypt cost and the clock are passed in by the caller (auth/service.py
gets them from the AppContext). Nothing reads settings at import time.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry sub (user id as a string, as
       jose requires), user_id, email, iat and exp. decode_access_token()
       raises AuthError on any failure -- the API layer turns that into 401.

       Expiry is checked against the caller-supplied `now` rather than jose's
       internal clock, so verification is deterministic under test.

  Passwords: bcrypt used directly (no passlib wrapper). Its cost factor makes
       brute force expensive and gensalt() gives every hash its own salt.
       bcrypt only looks at the first 72 bytes and current releases raise
       ValueError past that, so the service rejects longer passwords up front.

Layer rule: no imports from api/ or mappings/.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from auth.models import Identity
from core.errors import AuthError

ALGORITHM = "HS256"

# bcrypt input limit in bytes.
MAX_PASSWORD_BYTES = 72


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int) -> str:
    """Return a salted bcrypt hash of plain at the given cost factor."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed stored hash or an over-long input counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(
    user_id: int,
    email: str,
    secret: str,
    expire_seconds: int,
    now: datetime | None = None,
) -> str:
    """Encode a signed JWT binding user_id and email to an expiry.

    Args:
        user_id:        Numeric user ID stored in the DB.
        email:          The user's email, carried as a claim for display.
        secret:         HMAC signing key (Settings.secret_key).
        expire_seconds: Token lifetime in seconds.
        now:            Issue time. Defaults to the current UTC time.
    """
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "user_id": user_id,
        "email": email,
        "iat": issued,
        "exp": issued + timedelta(seconds=expire_seconds),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_access_token(token: str, secret: str, now: datetime | None = None) -> Identity:
    """Verify a JWT and return the identity it carries.

    Raises AuthError if the signature is invalid, the token is malformed,
    required claims are missing, or `now` is at or past the expiry.
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM], options={"verify_exp": False})
    except JWTError as exc:
        raise AuthError("Invalid or expired token.") from exc

    exp = payload.get("exp")
    user_id = payload.get("user_id")
    email = payload.get("email")
    if not isinstance(exp, (int, float)) or not isinstance(user_id, int) or not isinstance(email, str):
        raise AuthError("Invalid or expired token.")

    current = now or datetime.now(timezone.utc)
    if current.timestamp() >= exp:
        raise AuthError("Invalid or expired token.")
    return Identity(user_id=user_id, email=email)
