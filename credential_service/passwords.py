"""Password hashing helpers built on passlib's bcrypt support."""
from __future__ import annotations

from typing import Optional

from passlib.context import CryptContext
from passlib.exc import PasswordValueError

from .errors import ValidationError

DEFAULT_ROUNDS = 10
MIN_ROUNDS = 4
MAX_ROUNDS = 31


class PasswordHasher:
    """Salted bcrypt hashing with a configurable work factor.

    Every call to :meth:`hash` draws a fresh salt, so hashing the same
    password twice yields two different digests. Verification is delegated to
    passlib, which compares digests in constant time.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        if not MIN_ROUNDS <= int(rounds) <= MAX_ROUNDS:
            raise ValueError(f"bcrypt rounds must be between {MIN_ROUNDS} and {MAX_ROUNDS}")
        self._rounds = int(rounds)
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__default_rounds=self._rounds,
        )

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, password: Optional[str]) -> str:
        if not password:
            raise ValueError("Password must not be empty")
        try:
            return self._context.hash(password)
        except PasswordValueError as exc:
            raise ValidationError("Password contains characters that cannot be hashed", error=str(exc)) from exc

    def verify(self, password: Optional[str], hashed: Optional[str]) -> bool:
        if not password or not hashed:
            return False
        try:
            return self._context.verify(password, hashed)
        except (ValueError, TypeError):
            return False

    def dummy_verify(self) -> None:
        """Spend roughly the time of a real verification without a target hash."""

        self._context.dummy_verify()


__all__ = ["DEFAULT_ROUNDS", "PasswordHasher"]
