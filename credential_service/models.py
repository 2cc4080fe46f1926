"""Domain models for registered users and issued tokens."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict


@dataclass(frozen=True)
class UserRecord:
    """Represents a registered account held by the user registry."""

    id: int
    username: str
    email: str
    password_hash: str
    created_at: datetime

    def to_public(self) -> Dict[str, object]:
        """Serialise the record for clients, without the password hash."""

        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class TokenClaims:
    """Identity snapshot carried inside a signed bearer token."""

    id: int
    username: str
    email: str
    issued_at: datetime
    expires_at: datetime

    def to_public(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "issuedAt": self.issued_at.isoformat(),
            "expiresAt": self.expires_at.isoformat(),
        }


@dataclass(frozen=True)
class LoginResult:
    user: UserRecord
    token: str


__all__ = ["LoginResult", "TokenClaims", "UserRecord"]
