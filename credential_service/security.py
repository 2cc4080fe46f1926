"""Security helpers for the credential service API."""
from __future__ import annotations

from fastapi import Request
from fastapi.security import APIKeyHeader

from .auth import AuthFlow
from .models import TokenClaims


class BearerTokenAuth:
    """FastAPI dependency that resolves ``Authorization`` tokens to claims.

    The header is read verbatim and parsed by
    :meth:`~credential_service.auth.AuthFlow.authenticate_request`, so the
    second word is taken as the token whatever the scheme. A missing token
    raises :class:`~credential_service.errors.UnauthenticatedError` (401) and
    a token that fails verification raises
    :class:`~credential_service.errors.ForbiddenError` (403).
    """

    def __init__(self, flow: AuthFlow):
        self._flow = flow
        self._header = APIKeyHeader(name="Authorization", auto_error=False)

    async def __call__(self, request: Request) -> TokenClaims:
        authorization: str | None = await self._header(request)
        claims = self._flow.authenticate_request(authorization)
        request.state.claims = claims
        return claims


__all__ = ["BearerTokenAuth"]
