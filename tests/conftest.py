from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from credential_service.api import create_app
from credential_service.auth import AuthFlow
from credential_service.config import Settings
from credential_service.passwords import PasswordHasher
from credential_service.registry import UserRegistry
from credential_service.tokens import TokenIssuer

TEST_SECRET = "tests-secret-key-that-is-long-enough-for-hs256"
# bcrypt's minimum cost keeps the suite fast.
TEST_ROUNDS = 4


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=TEST_ROUNDS,
        token_ttl=timedelta(hours=24),
    )


@pytest.fixture()
def hasher() -> PasswordHasher:
    return PasswordHasher(TEST_ROUNDS)


@pytest.fixture()
def issuer() -> TokenIssuer:
    return TokenIssuer(TEST_SECRET)


@pytest.fixture()
def registry() -> UserRegistry:
    return UserRegistry()


@pytest.fixture()
def flow(registry: UserRegistry, hasher: PasswordHasher, issuer: TokenIssuer) -> AuthFlow:
    return AuthFlow(registry, hasher, issuer)


@pytest.fixture()
def client(settings: Settings, flow: AuthFlow):
    app = create_app(settings=settings, flow=flow)
    with TestClient(app) as test_client:
        yield test_client
