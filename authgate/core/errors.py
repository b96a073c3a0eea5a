# authgate/core/errors.py
from __future__ import annotations


class AuthError(Exception):
    """Expected workflow failure. Reported to the caller as a 400 result."""

    code = "AUTH_ERROR"
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuthError):
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class NotFoundError(AuthError):
    code = "NOT_FOUND"
    default_message = "User does not exist"


class ExpiredTokenError(AuthError):
    code = "EXPIRED_TOKEN"
    default_message = "Token has expired"


class InvalidTokenError(AuthError):
    code = "INVALID_TOKEN"
    default_message = "Invalid token"


class ConflictError(AuthError):
    code = "CONFLICT"
    default_message = "User already registered"


class InvalidCredentialsError(AuthError):
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid Credentials"


class SamePasswordError(AuthError):
    code = "SAME_PASSWORD"
    default_message = "Same password cannot be reset"


class UnexpectedError(AuthError):
    code = "UNEXPECTED"


class MailDeliveryError(RuntimeError):
    """SMTP delivery failed. Not an AuthError: it propagates to the caller."""
