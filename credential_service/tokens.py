"""Issue and verify signed bearer tokens."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping

import jwt

from .errors import (
    TokenExpiredError,
    TokenMalformedError,
    TokenMissingError,
    TokenSignatureError,
)
from .models import TokenClaims

DEFAULT_TOKEN_TTL = timedelta(hours=24)
_JWT_ALG = "HS256"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """Mint HS256 JWTs that bind a user's id, username, and email."""

    def __init__(
        self,
        secret: str,
        *,
        ttl: timedelta = DEFAULT_TOKEN_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        if ttl <= timedelta(0):
            raise ValueError("Token lifetime must be positive")
        self._secret = secret
        self._ttl = ttl
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, user: Any) -> str:
        """Sign a token for ``user``.

        ``user`` may be a :class:`~credential_service.models.UserRecord` or
        any mapping with ``id``, ``username`` and ``email`` keys.
        """

        source = user if isinstance(user, Mapping) else vars(user)
        now = self._clock()
        payload: Dict[str, Any] = {
            "id": int(source["id"]),
            "username": str(source["username"]),
            "email": str(source["email"]),
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=_JWT_ALG)

    def verify(self, token: str | None) -> TokenClaims:
        if not token:
            raise TokenMissingError("Token is empty")

        # Expiry is checked below against the issuer's own clock.
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_JWT_ALG],
                options={"require": ["exp", "iat"], "verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidSignatureError as exc:
            raise TokenSignatureError("Token signature is invalid") from exc
        except (jwt.DecodeError, jwt.MissingRequiredClaimError) as exc:
            raise TokenMalformedError(f"Token is malformed: {exc}") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenSignatureError(f"Token is invalid: {exc}") from exc

        try:
            claims = TokenClaims(
                id=int(payload["id"]),
                username=str(payload["username"]),
                email=str(payload["email"]),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (KeyError, TypeError, ValueError, OverflowError, OSError) as exc:
            raise TokenMalformedError(f"Token claims are incomplete: {exc}") from exc

        if claims.expires_at <= self._clock():
            raise TokenExpiredError("Token has expired")
        return claims


__all__ = ["DEFAULT_TOKEN_TTL", "TokenIssuer"]
