"""FastAPI application exposing registration, login, and user management."""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, TypeVar

import anyio
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import AuthFlow
from .config import Settings, load_settings
from .errors import InternalError, ServiceError, UserNotFoundError
from .models import TokenClaims
from .passwords import PasswordHasher
from .registry import UserRegistry
from .security import BearerTokenAuth
from .tokens import TokenIssuer

logger = logging.getLogger("credential_service.api")

T = TypeVar("T")

_LEADING_INTEGER = re.compile(r"^\s*([+-]?\d+)")


class RegisterRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    # Either a username or an email address.
    identifier: Optional[str] = None
    password: Optional[str] = None


def envelope(
    success: bool,
    message: str,
    *,
    data: Any = None,
    error: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    if error is not None:
        body["error"] = error
    body.update(extra)
    return body


async def _call(func: Callable[..., T], *args: Any) -> T:
    """Run ``func`` on a worker thread, turning unexpected failures into 500s."""

    try:
        return await anyio.to_thread.run_sync(func, *args)
    except ServiceError:
        raise
    except Exception as exc:
        logger.exception("Unexpected error while running %s", getattr(func, "__name__", func))
        raise InternalError(error=str(exc)) from exc


def parse_user_id(raw: str) -> int:
    """Read the leading integer of a path segment, so '1.0' and '1abc' mean 1."""

    match = _LEADING_INTEGER.match(raw)
    if match is None:
        raise UserNotFoundError()
    return int(match.group(1))


def build_auth_flow(settings: Settings, registry: UserRegistry | None = None) -> AuthFlow:
    return AuthFlow(
        registry if registry is not None else UserRegistry(),
        PasswordHasher(settings.bcrypt_rounds),
        TokenIssuer(settings.jwt_secret, ttl=settings.token_ttl),
    )


def create_app(
    *,
    settings: Settings | None = None,
    registry: UserRegistry | None = None,
    flow: AuthFlow | None = None,
) -> FastAPI:
    if settings is None:
        settings = load_settings()
    if flow is None:
        flow = build_auth_flow(settings, registry)

    auth = BearerTokenAuth(flow)
    user_route_dependencies = [Depends(auth)] if settings.protect_user_routes else []

    app = FastAPI(
        title="Credential Service",
        description="User registration, login, and bearer token issuance",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.flow = flow
    app.state.registry = flow.registry

    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=envelope(False, exc.message, error=exc.error),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in item.get('loc', ()))}: {item.get('msg', '')}"
            for item in exc.errors()
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=envelope(False, "Invalid request body", error=details or None),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=envelope(False, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error while serving %s %s", request.method, request.url.path)
        internal = InternalError(error=str(exc))
        return JSONResponse(
            status_code=internal.status_code,
            content=envelope(False, internal.message, error=internal.error),
        )

    @app.post("/api/register", status_code=status.HTTP_201_CREATED)
    async def register(payload: RegisterRequest) -> JSONResponse:
        user = await _call(flow.register, payload.username, payload.email, payload.password)
        return JSONResponse(
            status_code=status.HTTP_201_CREATED,
            content=envelope(True, "User registered successfully", data=user.to_public()),
        )

    @app.post("/api/login")
    async def login(payload: LoginRequest) -> Dict[str, Any]:
        result = await _call(flow.login, payload.identifier, payload.password)
        return envelope(
            True,
            "Login successful",
            data={"user": result.user.to_public(), "token": result.token},
        )

    @app.get("/api/users", dependencies=user_route_dependencies)
    async def list_users() -> Dict[str, Any]:
        users = await _call(flow.list_users)
        return envelope(
            True,
            "Users retrieved successfully",
            data=[user.to_public() for user in users],
        )

    @app.delete("/api/users/{user_id}", dependencies=user_route_dependencies)
    async def delete_user(user_id: str) -> Dict[str, Any]:
        await _call(flow.delete_user, parse_user_id(user_id))
        return envelope(True, "User deleted successfully")

    @app.get("/api/me")
    async def read_current_user(claims: TokenClaims = Depends(auth)) -> Dict[str, Any]:
        return envelope(True, "Token is valid", data=claims.to_public())

    @app.get("/api/health")
    async def healthcheck() -> Dict[str, Any]:
        return envelope(
            True,
            "Server is running",
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    return app


__all__ = ["LoginRequest", "RegisterRequest", "build_auth_flow", "create_app", "envelope", "parse_user_id"]
