"""
Error taxonomy raised by the auth core.

Each class carries the HTTP status and a stable error code so the API layer
can render it without knowing which operation failed.
"""
from typing import Optional


class AuthServiceError(Exception):
    """Base class for auth service errors."""

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"error": self.error_code, "detail": self.message}


class ValidationError(AuthServiceError):
    """Malformed, missing or mismatched input (400)."""
    status_code = 400
    error_code = "validation_error"


class AuthError(AuthServiceError):
    """Bad credentials or an invalid, expired or revoked token (401)."""
    status_code = 401
    error_code = "unauthorized"


class NotFoundError(AuthServiceError):
    """Unknown user or email (404)."""
    status_code = 404
    error_code = "not_found"


class ConflictError(AuthServiceError):
    """Duplicate unique field, e.g. an email that is already registered (409)."""
    status_code = 409
    error_code = "conflict"


class InternalError(AuthServiceError):
    """Store or transport failure (500)."""
    status_code = 500
    error_code = "server_error"


class EmailDeliveryError(Exception):
    """Raised by email senders when a message could not be handed off."""
