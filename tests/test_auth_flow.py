from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from credential_service.auth import AuthFlow
from credential_service.errors import (
    AuthenticationError,
    DuplicateEmailError,
    DuplicateError,
    DuplicateUsernameError,
    ForbiddenError,
    UnauthenticatedError,
    UserNotFoundError,
    ValidationError,
)
from credential_service.tokens import TokenIssuer

PASSWORD = "pw123"


def test_register_returns_record_with_hashed_password(flow: AuthFlow) -> None:
    user = flow.register("alice", "alice@x.com", PASSWORD)

    assert user.id == 1
    assert user.username == "alice"
    assert user.password_hash != PASSWORD
    assert flow.hasher.verify(PASSWORD, user.password_hash)
    assert "password_hash" not in user.to_public()
    assert "password" not in user.to_public()


@pytest.mark.parametrize(
    "username, email, password",
    [
        (None, "alice@x.com", PASSWORD),
        ("alice", None, PASSWORD),
        ("alice", "alice@x.com", None),
        ("", "alice@x.com", PASSWORD),
        ("alice", "", PASSWORD),
        ("alice", "alice@x.com", ""),
    ],
)
def test_register_requires_all_fields(flow: AuthFlow, username, email, password) -> None:
    with pytest.raises(ValidationError):
        flow.register(username, email, password)
    assert flow.list_users() == []


def test_register_same_username_twice(flow: AuthFlow) -> None:
    flow.register("alice", "alice@x.com", PASSWORD)

    with pytest.raises(DuplicateUsernameError) as excinfo:
        flow.register("alice", "second@x.com", PASSWORD)
    assert excinfo.value.field == "username"
    assert len(flow.list_users()) == 1


def test_register_reused_email_with_new_username(flow: AuthFlow) -> None:
    flow.register("alice", "alice@x.com", PASSWORD)

    with pytest.raises(DuplicateEmailError) as excinfo:
        flow.register("alice2", "alice@x.com", PASSWORD)
    assert isinstance(excinfo.value, DuplicateError)
    assert excinfo.value.field == "email"


def test_duplicate_check_happens_before_hashing(flow: AuthFlow, monkeypatch) -> None:
    flow.register("alice", "alice@x.com", PASSWORD)

    def fail_hash(password: str) -> str:
        raise AssertionError("hash should not be computed for duplicates")

    monkeypatch.setattr(flow.hasher, "hash", fail_hash)
    with pytest.raises(DuplicateUsernameError):
        flow.register("alice", "new@x.com", PASSWORD)


@pytest.mark.parametrize("identifier", ["alice", "alice@x.com"])
def test_login_with_username_or_email(flow: AuthFlow, identifier: str) -> None:
    registered = flow.register("alice", "alice@x.com", PASSWORD)

    result = flow.login(identifier, PASSWORD)

    assert result.user == registered
    assert result.token
    claims = flow.issuer.verify(result.token)
    assert (claims.id, claims.username, claims.email) == (1, "alice", "alice@x.com")


def test_wrong_password_and_unknown_user_are_indistinguishable(flow: AuthFlow) -> None:
    flow.register("alice", "alice@x.com", PASSWORD)

    with pytest.raises(AuthenticationError) as wrong_password:
        flow.login("alice", "wrong")
    with pytest.raises(AuthenticationError) as unknown_user:
        flow.login("mallory", PASSWORD)

    assert wrong_password.value.message == unknown_user.value.message
    assert wrong_password.value.status_code == unknown_user.value.status_code == 401


@pytest.mark.parametrize("identifier, password", [(None, PASSWORD), ("alice", None), ("", ""), ("alice", "")])
def test_login_requires_identifier_and_password(flow: AuthFlow, identifier, password) -> None:
    with pytest.raises(ValidationError):
        flow.login(identifier, password)


def test_authenticate_request_accepts_header_or_raw_token(flow: AuthFlow) -> None:
    flow.register("alice", "alice@x.com", PASSWORD)
    token = flow.login("alice", PASSWORD).token

    assert flow.authenticate_request(f"Bearer {token}").username == "alice"
    assert flow.authenticate_request(f"bearer   {token}").username == "alice"
    assert flow.authenticate_request(token).username == "alice"


@pytest.mark.parametrize("header", [None, "", "   ", "Bearer", "Bearer   "])
def test_authenticate_request_without_token(flow: AuthFlow, header) -> None:
    with pytest.raises(UnauthenticatedError):
        flow.authenticate_request(header)


def test_authenticate_request_with_bad_token(flow: AuthFlow) -> None:
    with pytest.raises(ForbiddenError):
        flow.authenticate_request("Bearer not-a-token")


def test_authenticate_request_with_expired_token(flow: AuthFlow) -> None:
    user = flow.register("alice", "alice@x.com", PASSWORD)
    long_ago = datetime.now(timezone.utc) - timedelta(days=2)
    stale = TokenIssuer("tests-secret-key-that-is-long-enough-for-hs256", clock=lambda: long_ago)

    with pytest.raises(ForbiddenError):
        flow.authenticate_request(f"Bearer {stale.issue(user)}")


def test_token_outlives_deleted_user(flow: AuthFlow) -> None:
    user = flow.register("alice", "alice@x.com", PASSWORD)
    token = flow.login("alice", PASSWORD).token
    flow.delete_user(user.id)

    assert flow.authenticate_request(f"Bearer {token}").id == user.id


def test_delete_user_twice(flow: AuthFlow) -> None:
    user = flow.register("alice", "alice@x.com", PASSWORD)

    flow.delete_user(user.id)
    assert flow.list_users() == []
    with pytest.raises(UserNotFoundError):
        flow.delete_user(user.id)


def test_authenticate_request_takes_second_word_whatever_the_scheme(flow: AuthFlow) -> None:
    flow.register("alice", "alice@x.com", PASSWORD)
    token = flow.login("alice", PASSWORD).token

    assert flow.authenticate_request(f"Token {token}").username == "alice"
    with pytest.raises(ForbiddenError):
        flow.authenticate_request("Basic dXNlcjpwYXNz")


def test_register_with_unhashable_password_is_a_validation_error(flow: AuthFlow) -> None:
    with pytest.raises(ValidationError):
        flow.register("bob", "bob@x.com", "p\x00w")
    assert flow.list_users() == []
