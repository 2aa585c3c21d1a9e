"""
core/errors.py -- Domain error taxonomy.

Stores and services raise these; the API layer maps them to the uniform
JSON error envelope in one exception handler (api/main.py). Nothing below
the API layer knows about HTTP beyond the status_code class attribute.

Layer rule: core/ is the kernel. No imports from api/, auth/, or mappings/.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors that carry a client-safe message."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(AppError):
    """Malformed or missing input."""

    status_code = 400
    code = "validation_error"


class ConflictError(AppError):
    """A uniqueness rule was violated (duplicate email)."""

    status_code = 400
    code = "conflict"


class AuthError(AppError):
    """Bad credentials, or a missing, invalid or expired token."""

    status_code = 401
    code = "unauthorized"


class NotFoundError(AppError):
    """Resource is absent or owned by another user. The two are never distinguished."""

    status_code = 404
    code = "not_found"


class InternalError(AppError):
    """Storage or unexpected failure. The message sent to clients is always generic."""

    status_code = 500
    code = "internal_error"
