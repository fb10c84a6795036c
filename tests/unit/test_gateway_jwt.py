"""Unit tests for the admin JWT handler."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from jose import jwt

from config.settings import settings
from src.px_common.errors import InvalidAdminTokenError
from src.px_gateway.auth.jwt_handler import create_admin_token, decode_admin_token


def test_admin_token_claims() -> None:
    payload = jwt.get_unverified_claims(create_admin_token())
    assert payload["sub"] == "admin"
    assert payload["type"] == "admin"


def test_decode_valid_token() -> None:
    assert decode_admin_token(create_admin_token())["type"] == "admin"


def test_expired_token_rejected() -> None:
    token = create_admin_token(expires_in=timedelta(seconds=-10))
    with pytest.raises(InvalidAdminTokenError):
        decode_admin_token(token)


def test_wrong_secret_rejected() -> None:
    forged = jwt.encode({"sub": "admin", "type": "admin"}, "other-secret", algorithm="HS256")
    with pytest.raises(InvalidAdminTokenError):
        decode_admin_token(forged)


def test_token_of_other_type_rejected() -> None:
    other = jwt.encode({"sub": "admin", "type": "access"}, settings.JWT_SECRET, algorithm="HS256")
    with pytest.raises(InvalidAdminTokenError):
        decode_admin_token(other)


def test_garbage_rejected() -> None:
    with pytest.raises(InvalidAdminTokenError):
        decode_admin_token("not.a.jwt")


def test_token_times_come_from_utc_clock() -> None:
    issued = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
    with patch("src.px_gateway.auth.jwt_handler.utc_now", return_value=issued):
        payload = jwt.get_unverified_claims(create_admin_token(expires_in=timedelta(minutes=5)))

    assert payload["iat"] == int(issued.timestamp())
    assert payload["exp"] == int(issued.timestamp()) + 300
