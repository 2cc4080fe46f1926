"""Registration, login, and request authentication workflows."""
from __future__ import annotations

import logging
from typing import List, Optional

from .errors import (
    AuthenticationError,
    ForbiddenError,
    TokenVerificationError,
    UnauthenticatedError,
    ValidationError,
)
from .models import LoginResult, TokenClaims, UserRecord
from .passwords import PasswordHasher
from .registry import UserRegistry
from .tokens import TokenIssuer

logger = logging.getLogger("credential_service.auth")


def _extract_token(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    parts = text.split(None, 1)
    if len(parts) == 2:
        # "<scheme> <token>": the token is present whatever the scheme says.
        return parts[1].strip() or None
    if parts[0].lower() == "bearer":
        return None
    return text


class AuthFlow:
    """Coordinates the registry, the password hasher, and the token issuer."""

    def __init__(
        self,
        registry: UserRegistry,
        hasher: PasswordHasher,
        issuer: TokenIssuer,
    ) -> None:
        self.registry = registry
        self.hasher = hasher
        self.issuer = issuer

    def register(
        self,
        username: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> UserRecord:
        if not username or not email or not password:
            raise ValidationError("Username, email and password are required")

        # Fail fast on duplicates before paying for a hash; create() re-checks
        # under the registry lock.
        self.registry.ensure_available(username, email)
        password_hash = self.hasher.hash(password)
        user = self.registry.create(username, email, password_hash)
        logger.info("Registered user %s (%s)", user.username, user.id)
        return user

    def login(self, identifier: Optional[str], password: Optional[str]) -> LoginResult:
        if not identifier or not password:
            raise ValidationError("Username/email and password are required")

        user = self.registry.find_by_identifier(identifier)
        if user is None:
            self.hasher.dummy_verify()
            logger.warning("Failed login attempt for %s", identifier)
            raise AuthenticationError()

        if not self.hasher.verify(password, user.password_hash):
            logger.warning("Failed login attempt for %s", identifier)
            raise AuthenticationError()

        token = self.issuer.issue(user)
        logger.info("User %s logged in", user.id)
        return LoginResult(user=user, token=token)

    def authenticate_request(self, authorization: Optional[str]) -> TokenClaims:
        """Resolve the claims for a raw token or an ``Authorization`` header value."""

        token = _extract_token(authorization)
        if token is None:
            raise UnauthenticatedError()
        try:
            return self.issuer.verify(token)
        except TokenVerificationError as exc:
            logger.info("Rejected bearer token: %s", exc)
            raise ForbiddenError() from exc

    def list_users(self) -> List[UserRecord]:
        return self.registry.list()

    def delete_user(self, user_id: int) -> UserRecord:
        user = self.registry.delete(user_id)
        logger.info("Deleted user %s (%s)", user.username, user.id)
        return user


__all__ = ["AuthFlow"]
