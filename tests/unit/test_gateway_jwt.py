"""Unit tests for the JWT handler."""

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from config.settings import settings
from src.wl_common.errors import InvalidCredentialsError, InvalidRefreshTokenError
from src.wl_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)


def test_tokens_carry_subject_and_type() -> None:
    access = jwt.get_unverified_claims(create_access_token("user-123"))
    refresh = jwt.get_unverified_claims(create_refresh_token("user-123"))
    assert (access["sub"], access["type"]) == ("user-123", "access")
    assert (refresh["sub"], refresh["type"]) == ("user-123", "refresh")


def test_refresh_outlives_access() -> None:
    access = jwt.get_unverified_claims(create_access_token("u"))
    refresh = jwt.get_unverified_claims(create_refresh_token("u"))
    assert refresh["exp"] - access["exp"] > 3600


def test_decode_round_trip() -> None:
    payload = decode_token(create_access_token("user-abc"), expected_type="access")
    assert payload["sub"] == "user-abc"


def test_wrong_token_type_is_rejected() -> None:
    with pytest.raises(InvalidRefreshTokenError):
        decode_token(create_access_token("u"), expected_type="refresh")
    with pytest.raises(InvalidCredentialsError):
        decode_token(create_refresh_token("u"), expected_type="access")


def test_expired_token_is_rejected() -> None:
    past = datetime.now(UTC) - timedelta(hours=1)
    token = jwt.encode(
        {"sub": "u", "type": "access", "iat": past, "exp": past + timedelta(minutes=1)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidCredentialsError):
        decode_token(token, expected_type="access")


def test_foreign_signature_is_rejected() -> None:
    token = jwt.encode({"sub": "u", "type": "access"}, "other-secret", algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token, expected_type="access")


def test_garbage_is_rejected() -> None:
    with pytest.raises(InvalidRefreshTokenError):
        decode_token("not.a.token", expected_type="refresh")
