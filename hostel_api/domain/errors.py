from __future__ import annotations

from typing import Optional


class ServiceError(Exception):
    """Base class for domain errors that carry the HTTP status they map to.

    Every operation signals failure by raising one of these; the API layer turns
    them into a ``{"success": false, "message": ...}`` body in one place.
    """

    status_code: int = 400
    default_message: str = "Bad request"

    def __init__(self, message: Optional[str] = None, *, status_code: Optional[int] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceError):
    """Missing or malformed request fields."""
    default_message = "Invalid request"


class DuplicateEmailError(ServiceError):
    default_message = "Email already exists"


class InvalidCredentialsError(ServiceError):
    """Unknown email or wrong password; the message never says which."""
    default_message = "Invalid email or password"


class AccountInactiveError(ServiceError):
    default_message = "Please activate your account before logging in"


class TokenInvalidError(ServiceError):
    default_message = "Token expired or invalid"


class CodeMismatchError(ServiceError):
    default_message = "Invalid activation code"


class AlreadyActiveError(ServiceError):
    default_message = "Account is already active"


class MissingTokenError(ServiceError):
    default_message = "Please login to access this resource"


class SessionExpiredError(ServiceError):
    default_message = "Please login to access this resource"


class CorruptSessionError(ServiceError):
    default_message = "Invalid session data"


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "Not found"


class InfrastructureError(ServiceError):
    """A backing store call failed; the request is aborted."""
    status_code = 500
    default_message = "Service temporarily unavailable"


__all__ = [
    "ServiceError",
    "ValidationError",
    "DuplicateEmailError",
    "InvalidCredentialsError",
    "AccountInactiveError",
    "TokenInvalidError",
    "CodeMismatchError",
    "AlreadyActiveError",
    "MissingTokenError",
    "SessionExpiredError",
    "CorruptSessionError",
    "NotFoundError",
    "InfrastructureError",
]
