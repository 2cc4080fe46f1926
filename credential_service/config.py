"""Configuration management for the credential service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from datetime import timedelta
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

import yaml

from .errors import ConfigurationError
from .passwords import DEFAULT_ROUNDS

logger = logging.getLogger("credential_service.config")

INSECURE_DEFAULT_SECRET = "your-secret-key-here"
PRODUCTION_ENVIRONMENTS = {"prod", "production"}


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _split_origins(value: object) -> Tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        items = str(value).split(",")
    origins = tuple(item.strip() for item in items if item.strip())
    return origins or ("*",)


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, loaded once at startup."""

    host: str = "0.0.0.0"
    port: int = 3000
    jwt_secret: str = INSECURE_DEFAULT_SECRET
    token_ttl: timedelta = timedelta(hours=24)
    bcrypt_rounds: int = DEFAULT_ROUNDS
    environment: str = "development"
    protect_user_routes: bool = False
    cors_origins: Tuple[str, ...] = field(default_factory=lambda: ("*",))

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in PRODUCTION_ENVIRONMENTS

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret == INSECURE_DEFAULT_SECRET

    @staticmethod
    def from_dict(data: Mapping[str, object]) -> "Settings":
        """Create :class:`Settings` from the keys of a YAML configuration file."""

        settings = Settings()
        updates: Dict[str, object] = {}
        if "host" in data:
            updates["host"] = str(data["host"])
        if "port" in data:
            updates["port"] = int(data["port"])  # type: ignore[arg-type]
        if "jwt_secret" in data:
            updates["jwt_secret"] = str(data["jwt_secret"])
        if "jwt_expiry_hours" in data:
            updates["token_ttl"] = timedelta(hours=float(data["jwt_expiry_hours"]))  # type: ignore[arg-type]
        if "bcrypt_rounds" in data:
            updates["bcrypt_rounds"] = int(data["bcrypt_rounds"])  # type: ignore[arg-type]
        if "environment" in data:
            updates["environment"] = str(data["environment"])
        if "protect_user_routes" in data:
            flag = data["protect_user_routes"]
            updates["protect_user_routes"] = _env_flag(flag) if isinstance(flag, str) else bool(flag)
        if "cors_origins" in data:
            updates["cors_origins"] = _split_origins(data["cors_origins"])
        return replace(settings, **updates)


def _apply_environment(settings: Settings, env: Mapping[str, str]) -> Settings:
    updates: Dict[str, object] = {}
    if env.get("HOST"):
        updates["host"] = env["HOST"].strip()
    if env.get("PORT"):
        updates["port"] = int(env["PORT"])
    if env.get("JWT_SECRET"):
        updates["jwt_secret"] = env["JWT_SECRET"]
    if env.get("JWT_EXPIRY_HOURS"):
        updates["token_ttl"] = timedelta(hours=float(env["JWT_EXPIRY_HOURS"]))
    if env.get("BCRYPT_ROUNDS"):
        updates["bcrypt_rounds"] = int(env["BCRYPT_ROUNDS"])
    if env.get("CREDENTIAL_SERVICE_ENV"):
        updates["environment"] = env["CREDENTIAL_SERVICE_ENV"].strip()
    if "CREDENTIAL_SERVICE_PROTECT_USER_ROUTES" in env:
        updates["protect_user_routes"] = _env_flag(env["CREDENTIAL_SERVICE_PROTECT_USER_ROUTES"])
    if env.get("CORS_ORIGINS"):
        updates["cors_origins"] = _split_origins(env["CORS_ORIGINS"])
    return replace(settings, **updates)


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    *,
    config_path: Optional[Path] = None,
) -> Settings:
    """Load settings from an optional YAML file overlaid with environment variables."""

    if env is None:
        env = os.environ

    if config_path is None and env.get("CREDENTIAL_SERVICE_CONFIG"):
        config_path = Path(env["CREDENTIAL_SERVICE_CONFIG"]).expanduser().resolve(strict=False)

    settings = Settings()
    if config_path is not None:
        with config_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Configuration file {config_path} must contain a mapping")
        settings = Settings.from_dict(raw)

    try:
        settings = _apply_environment(settings, env)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid environment configuration: {exc}") from exc

    validate_settings(settings)
    return settings


def validate_settings(settings: Settings) -> None:
    if not settings.jwt_secret:
        raise ConfigurationError("JWT secret must not be empty")
    if settings.token_ttl <= timedelta(0):
        raise ConfigurationError("Token lifetime must be positive")
    if settings.uses_default_secret:
        if settings.is_production:
            raise ConfigurationError(
                "JWT_SECRET must be set explicitly when CREDENTIAL_SERVICE_ENV is production"
            )
        logger.warning("JWT_SECRET is not set; falling back to an insecure placeholder secret")


__all__ = [
    "INSECURE_DEFAULT_SECRET",
    "Settings",
    "load_settings",
    "validate_settings",
]
