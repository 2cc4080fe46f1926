"""Exception hierarchy shared by the credential service layers."""
from __future__ import annotations

from typing import Optional


class ServiceError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, error: Optional[str] = None) -> None:
        self.message = message or self.message
        self.error = error
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = 400
    message = "Invalid request"


class DuplicateError(ServiceError):
    """Raised when a username or email is already registered."""

    status_code = 400
    field = ""


class DuplicateUsernameError(DuplicateError):
    field = "username"
    message = "Username is already taken"


class DuplicateEmailError(DuplicateError):
    field = "email"
    message = "Email is already registered"


class AuthenticationError(ServiceError):
    """Bad identifier or password. The message never says which."""

    status_code = 401
    message = "Invalid username/email or password"


class UserNotFoundError(ServiceError):
    status_code = 404
    message = "User not found"


class UnauthenticatedError(ServiceError):
    status_code = 401
    message = "Token not found"


class ForbiddenError(ServiceError):
    status_code = 403
    message = "Invalid token"


class InternalError(ServiceError):
    status_code = 500
    message = "Internal server error"


class TokenVerificationError(Exception):
    """Base class for bearer token failures raised by the token issuer."""


class TokenMissingError(TokenVerificationError):
    pass


class TokenMalformedError(TokenVerificationError):
    pass


class TokenExpiredError(TokenVerificationError):
    pass


class TokenSignatureError(TokenVerificationError):
    pass


class ConfigurationError(RuntimeError):
    """Raised at startup when the service settings are unusable."""


__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "DuplicateEmailError",
    "DuplicateError",
    "DuplicateUsernameError",
    "ForbiddenError",
    "InternalError",
    "ServiceError",
    "TokenExpiredError",
    "TokenMalformedError",
    "TokenMissingError",
    "TokenSignatureError",
    "TokenVerificationError",
    "UnauthenticatedError",
    "UserNotFoundError",
    "ValidationError",
]
