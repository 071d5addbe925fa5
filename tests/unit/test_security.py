"""
Unit tests for optional session binding.
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from petpal_chat_service.config import settings
from petpal_chat_service.errors import Forbidden
from petpal_chat_service.security import (
    AuthError,
    SessionIdentity,
    bind_email,
    decode_session_token,
    parse_bearer,
)

SECRET = "test-secret"


def issue_token(email="requester@example.com", expires_in=timedelta(hours=1), **claims):
    now = datetime.now(tz=timezone.utc)
    payload = {
        "sub": "user-1",
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
        **claims,
    }
    if email is not None:
        payload["email"] = email
    return jwt.encode(payload, SECRET, algorithm="HS256")


@pytest.fixture(autouse=True)
def binding_enabled(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_JWT_SECRET_KEY", SECRET)
    monkeypatch.setattr(settings, "AUTH_JWT_ISSUER", None)
    monkeypatch.setattr(settings, "AUTH_JWT_AUDIENCE", None)


def test_parse_bearer_header_and_query():
    assert parse_bearer({"authorization": "Bearer abc"}) == "abc"
    assert parse_bearer({"authorization": "Basic abc"}) is None
    assert parse_bearer({}, {"token": "xyz"}) == "xyz"
    assert parse_bearer({}) is None


def test_decode_session_token_normalizes_email():
    identity = decode_session_token(issue_token(email="Requester@Example.com"))

    assert identity.email == "requester@example.com"
    assert identity.claims["sub"] == "user-1"


def test_decode_session_token_rejects_bad_tokens():
    with pytest.raises(AuthError):
        decode_session_token(issue_token(expires_in=timedelta(seconds=-30)))
    with pytest.raises(AuthError):
        decode_session_token(issue_token(email=None))
    with pytest.raises(AuthError):
        decode_session_token(jwt.encode({"email": "a@b.c"}, "other-secret", algorithm="HS256"))


def test_decode_session_token_checks_issuer_when_configured(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_JWT_ISSUER", "petpal-auth")

    assert decode_session_token(issue_token(iss="petpal-auth")).email == "requester@example.com"
    with pytest.raises(AuthError):
        decode_session_token(issue_token(iss="someone-else"))


def test_bind_email():
    identity = SessionIdentity(email="requester@example.com")

    bind_email(None, "anyone@example.com")
    bind_email(identity, " REQUESTER@example.com ")
    with pytest.raises(Forbidden):
        bind_email(identity, "owner@example.com")
