"""Tests for identity-token verification."""
import time

import jwt
import pytest

from fitcompare.auth.identity import (
    EmailNotVerifiedError,
    Identity,
    IdentityVerifier,
    InvalidTokenError,
)

KEY = "unit-test-signing-key-0123456789abcdef"


def make_token(key: str = KEY, **overrides) -> str:
    claims = {
        "sub": "rider-1",
        "email": "rider@example.com",
        "email_verified": True,
        "exp": int(time.time()) + 3600,
    }
    claims.update(overrides)
    claims = {k: v for k, v in claims.items() if v is not None}
    return jwt.encode(claims, key, algorithm="HS256")


class TestVerify:
    def test_valid_token(self):
        identity = IdentityVerifier(key=KEY).verify(make_token())
        assert identity == Identity(
            subject="rider-1", email="rider@example.com", email_verified=True
        )

    def test_wrong_key(self):
        with pytest.raises(InvalidTokenError):
            IdentityVerifier(key=KEY).verify(make_token(key="another-key-0123456789abcdef0123"))

    def test_expired(self):
        with pytest.raises(InvalidTokenError):
            IdentityVerifier(key=KEY).verify(make_token(exp=int(time.time()) - 60))

    def test_garbage(self):
        with pytest.raises(InvalidTokenError):
            IdentityVerifier(key=KEY).verify("not-a-jwt")

    def test_missing_subject(self):
        with pytest.raises(InvalidTokenError, match="subject"):
            IdentityVerifier(key=KEY).verify(make_token(sub=None))

    def test_unverified_email_rejected(self):
        with pytest.raises(EmailNotVerifiedError):
            IdentityVerifier(key=KEY).verify(make_token(email_verified=False))

    def test_unverified_email_allowed_when_not_required(self):
        verifier = IdentityVerifier(key=KEY, require_verified_email=False)
        assert verifier.verify(make_token(email_verified=False)).email_verified is False


class TestAudienceAndIssuer:
    def test_matching_audience_and_issuer(self):
        verifier = IdentityVerifier(key=KEY, audience="fit-compare", issuer="https://id.example.com")
        token = make_token(aud="fit-compare", iss="https://id.example.com")
        assert verifier.verify(token).subject == "rider-1"

    def test_wrong_audience(self):
        verifier = IdentityVerifier(key=KEY, audience="fit-compare")
        with pytest.raises(InvalidTokenError):
            verifier.verify(make_token(aud="someone-else"))

    def test_wrong_issuer(self):
        verifier = IdentityVerifier(key=KEY, issuer="https://id.example.com")
        with pytest.raises(InvalidTokenError):
            verifier.verify(make_token(iss="https://evil.example.com"))

    def test_audience_ignored_when_not_configured(self):
        assert IdentityVerifier(key=KEY).verify(make_token(aud="anything")).subject == "rider-1"
