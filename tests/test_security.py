from datetime import timedelta

import pytest

from app.core import security
from app.core.errors import InvalidTokenError


def test_password_hash_round_trip(settings):
    hashed = security.get_password_hash("Str0ng!Pass", settings)

    assert hashed != "Str0ng!Pass"
    assert security.verify_password("Str0ng!Pass", hashed, settings)
    assert not security.verify_password("wrong", hashed, settings)


def test_verify_password_without_hash(settings):
    assert not security.verify_password("anything", None, settings)


def test_password_strength_lists_every_unmet_rule():
    problems = security.validate_password_strength("short")

    assert "Password must be at least 8 characters long" in problems
    assert "Password must contain at least one uppercase letter" in problems
    assert "Password must contain at least one number" in problems
    assert "Password must contain at least one special character" in problems
    assert security.validate_password_strength("Str0ng!Pass") == []


def test_access_token_carries_identity(settings):
    token = security.create_access_token(7, "user@example.com", settings)

    payload = security.verify_access_token(token, settings)

    assert payload.sub == 7
    assert payload.email == "user@example.com"
    assert payload.type == "access"


def test_refresh_token_is_not_an_access_token(settings):
    pair = security.create_token_pair(7, "user@example.com", settings)

    with pytest.raises(InvalidTokenError):
        security.verify_access_token(pair.refresh_token, settings)
    with pytest.raises(InvalidTokenError):
        security.verify_refresh_token(pair.access_token, settings)
    assert security.verify_refresh_token(pair.refresh_token, settings).sub == 7


def test_expired_token_is_rejected(settings):
    token = security.create_access_token(7, "user@example.com", settings, expires_delta=timedelta(seconds=-5))

    with pytest.raises(InvalidTokenError):
        security.verify_access_token(token, settings)


def test_tampered_token_is_rejected(settings):
    token = security.create_access_token(7, "user@example.com", settings)

    with pytest.raises(InvalidTokenError):
        security.verify_access_token(token[:-2] + "xx", settings)
