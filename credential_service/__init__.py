"""Core utilities for the credential management service."""

from __future__ import annotations

from typing import Any

from .auth import AuthFlow
from .passwords import PasswordHasher
from .registry import UserRegistry
from .tokens import TokenIssuer


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP application."""

    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "AuthFlow",
    "PasswordHasher",
    "TokenIssuer",
    "UserRegistry",
    "create_app",
]
