"""In-memory storage for registered user accounts."""

from __future__ import annotations

import itertools
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .errors import DuplicateEmailError, DuplicateUsernameError, UserNotFoundError
from .models import UserRecord


class UserRegistry:
    """Create, look up, list, and delete user records.

    Usernames and emails are unique by exact string comparison. All access
    goes through a single lock so the duplicate check and the insert of
    :meth:`create` happen atomically, and readers never see a half-applied
    create or delete. Identifiers come from a counter that is never rewound,
    so deleting a user never frees its id for reuse.
    """

    def __init__(self) -> None:
        self._records: Dict[int, UserRecord] = {}
        self._by_username: Dict[str, int] = {}
        self._by_email: Dict[str, int] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def ensure_available(self, username: str, email: str) -> None:
        """Raise a duplicate error if ``username`` or ``email`` is taken."""

        with self._lock:
            self._check_available_locked(username, email)

    def create(self, username: str, email: str, password_hash: str) -> UserRecord:
        with self._lock:
            self._check_available_locked(username, email)
            record = UserRecord(
                id=next(self._ids),
                username=username,
                email=email,
                password_hash=password_hash,
                created_at=self._now(),
            )
            self._records[record.id] = record
            self._by_username[username] = record.id
            self._by_email[email] = record.id
            return record

    def get(self, user_id: int) -> Optional[UserRecord]:
        with self._lock:
            return self._records.get(user_id)

    def find_by_identifier(self, identifier: str) -> Optional[UserRecord]:
        """Return the user whose username or email equals ``identifier``."""

        with self._lock:
            matches = [
                user_id
                for user_id in (self._by_username.get(identifier), self._by_email.get(identifier))
                if user_id is not None
            ]
            if not matches:
                return None
            # Ids follow insertion order, so the lowest id is the oldest record.
            return self._records[min(matches)]

    def list(self) -> List[UserRecord]:
        with self._lock:
            return list(self._records.values())

    def delete(self, user_id: int) -> UserRecord:
        with self._lock:
            record = self._records.pop(user_id, None)
            if record is None:
                raise UserNotFoundError()
            self._by_username.pop(record.username, None)
            self._by_email.pop(record.email, None)
            return record

    def _check_available_locked(self, username: str, email: str) -> None:
        if username in self._by_username:
            raise DuplicateUsernameError()
        if email in self._by_email:
            raise DuplicateEmailError()

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)


__all__ = ["UserRegistry"]
