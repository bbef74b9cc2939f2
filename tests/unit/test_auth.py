"""
Unit tests for the token verifiers.
"""

import logging
import time

import jwt
import pytest

from httpchain.auth import JWTVerifier, StaticTokenVerifier
from httpchain.errors import TokenVerificationError


class TestJWTVerifier:

    def test_issue_and_verify(self, verifier):
        token = verifier.issue({"sub": "alice"}, expires_in=60)

        assert verifier.verify(token) is True
        claims = verifier.decode(token)
        assert claims["sub"] == "alice"
        assert claims["exp"] - claims["iat"] == 60

    def test_empty_token_rejected(self, verifier):
        with pytest.raises(TokenVerificationError):
            verifier.verify("")

    def test_garbage_token_rejected(self, verifier):
        with pytest.raises(TokenVerificationError) as exc_info:
            verifier.verify("not-a-jwt")

        assert isinstance(exc_info.value.__cause__, jwt.exceptions.InvalidTokenError)

    def test_wrong_key_rejected(self, verifier):
        token = jwt.encode({"sub": "mallory"}, "some-other-key-0123456789abcdef01234", algorithm="HS256")

        with pytest.raises(TokenVerificationError):
            verifier.verify(token)

    def test_expired_token_rejected(self, verifier, jwt_secret):
        token = jwt.encode(
            {"sub": "alice", "exp": int(time.time()) - 60},
            jwt_secret,
            algorithm="HS256",
        )

        with pytest.raises(TokenVerificationError, match="expired"):
            verifier.verify(token)

    def test_leeway_allows_recent_expiry(self, jwt_secret):
        verifier = JWTVerifier(jwt_secret, leeway=120)
        token = jwt.encode(
            {"sub": "alice", "exp": int(time.time()) - 60},
            jwt_secret,
            algorithm="HS256",
        )

        assert verifier.verify(token) is True

    def test_algorithm_not_allowed(self, jwt_secret):
        token = jwt.encode({"sub": "alice"}, jwt_secret, algorithm="HS512")

        with pytest.raises(TokenVerificationError):
            JWTVerifier(jwt_secret, algorithms=["HS256"]).verify(token)

    def test_audience_and_issuer(self, jwt_secret):
        verifier = JWTVerifier(jwt_secret, audience="api", issuer="httpchain")
        token = verifier.issue({"sub": "alice"})

        claims = verifier.decode(token)
        assert claims["aud"] == "api"
        assert claims["iss"] == "httpchain"

        other_audience = JWTVerifier(jwt_secret, audience="admin")
        with pytest.raises(TokenVerificationError):
            other_audience.verify(token)

    def test_audience_ignored_when_not_configured(self, verifier, jwt_secret):
        token = jwt.encode({"sub": "alice", "aud": "anything"}, jwt_secret, algorithm="HS256")

        assert verifier.verify(token) is True

    def test_requires_secret(self):
        with pytest.raises(ValueError):
            JWTVerifier("")

    def test_requires_algorithm(self, jwt_secret):
        with pytest.raises(ValueError):
            JWTVerifier(jwt_secret, algorithms=[])

    def test_algorithms_property(self, jwt_secret):
        assert JWTVerifier(jwt_secret, algorithms=["HS384", "HS256"]).algorithms == ("HS384", "HS256")


class TestStaticTokenVerifier:

    def test_known_token(self):
        assert StaticTokenVerifier(["a", "b"]).verify("b") is True

    def test_unknown_token(self):
        assert StaticTokenVerifier(["a"]).verify("c") is False

    def test_empty_token_never_valid(self):
        verifier = StaticTokenVerifier(["", "a"])

        assert verifier.verify("") is False

    def test_no_tokens_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            verifier = StaticTokenVerifier([])

        assert "no tokens" in caplog.text
        assert verifier.verify("anything") is False
