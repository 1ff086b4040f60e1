"""Tests for token verification -- saved analyses are only reachable by their owner."""

import pytest
from fastapi import HTTPException
from jose import jwt

from applymate.core.auth import get_identity, get_optional_identity, verify_token
from applymate.core.config import settings


def _make_token(sub: str | None = "user-1", email: str | None = "jane@example.com", secret: str | None = None) -> str:
    claims = {}
    if sub is not None:
        claims["sub"] = sub
    if email is not None:
        claims["email"] = email
    return jwt.encode(claims, secret or settings.jwt_secret, algorithm=settings.jwt_algorithm)


class FakeCreds:
    def __init__(self, credentials: str):
        self.credentials = credentials


class TestVerifyToken:
    def test_valid_token_returns_identity(self):
        identity = verify_token(_make_token())
        assert identity is not None
        assert identity.subject == "user-1"
        assert identity.email == "jane@example.com"

    def test_email_is_optional(self):
        identity = verify_token(_make_token(email=None))
        assert identity.subject == "user-1"
        assert identity.email is None

    def test_garbage_token_is_invalid(self):
        assert verify_token("invalid.jwt.token") is None

    def test_empty_token_is_invalid(self):
        assert verify_token("") is None

    def test_wrong_secret_is_invalid(self):
        assert verify_token(_make_token(secret="another-secret")) is None

    def test_missing_subject_is_invalid(self):
        assert verify_token(_make_token(sub=None)) is None

    def test_blank_subject_is_invalid(self):
        assert verify_token(_make_token(sub="   ")) is None


class TestDependencies:
    def test_anonymous_caller_has_no_identity(self):
        assert get_optional_identity(None) is None

    def test_invalid_token_raises_401_even_when_optional(self):
        with pytest.raises(HTTPException) as exc_info:
            get_optional_identity(FakeCreds("invalid.jwt.token"))
        assert exc_info.value.status_code == 401

    def test_optional_identity_from_valid_token(self):
        identity = get_optional_identity(FakeCreds(_make_token(sub="user-9")))
        assert identity.subject == "user-9"

    def test_required_identity_rejects_anonymous(self):
        with pytest.raises(HTTPException) as exc_info:
            get_identity(None)
        assert exc_info.value.status_code == 401

    def test_required_identity_passes_through(self):
        identity = verify_token(_make_token())
        assert get_identity(identity) is identity
