"""Unit tests for JWT handler."""

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from config.settings import settings
from src.gb_common.errors import InvalidRefreshTokenError, UnauthenticatedError
from src.gb_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)


def test_access_token_contains_correct_claims() -> None:
    payload = jwt.get_unverified_claims(create_access_token("user-123"))
    assert payload["sub"] == "user-123"
    assert payload["type"] == "access"


def test_refresh_token_contains_correct_claims() -> None:
    payload = jwt.get_unverified_claims(create_refresh_token("user-123"))
    assert payload["sub"] == "user-123"
    assert payload["type"] == "refresh"


def test_decode_valid_access_token() -> None:
    payload = decode_token(create_access_token("user-abc"), expected_type="access")
    assert payload["sub"] == "user-abc"


def test_access_token_used_as_refresh_raises_error() -> None:
    with pytest.raises(InvalidRefreshTokenError):
        decode_token(create_access_token("user-abc"), expected_type="refresh")


def test_refresh_token_used_as_access_raises_error() -> None:
    with pytest.raises(UnauthenticatedError):
        decode_token(create_refresh_token("user-abc"), expected_type="access")


def test_garbage_token_raises_unauthenticated() -> None:
    with pytest.raises(UnauthenticatedError):
        decode_token("not.a.jwt", expected_type="access")


def test_wrong_secret_rejected() -> None:
    token = jwt.encode(
        {"sub": "u", "type": "access", "exp": datetime.now(UTC) + timedelta(minutes=5)},
        "some-other-secret",
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(UnauthenticatedError):
        decode_token(token, expected_type="access")


def test_expired_token_rejected() -> None:
    token = jwt.encode(
        {"sub": "u", "type": "refresh", "exp": datetime.now(UTC) - timedelta(seconds=1)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidRefreshTokenError):
        decode_token(token, expected_type="refresh")
