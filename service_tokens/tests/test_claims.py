"""
Unit tests for the claims factory, claim-set builder and Token value.
"""

import re

import pytest

from service_tokens.app.clock import from_timestamp, timestamp
from service_tokens.app.tokens.claims import ClaimsFactory, ClaimSetBuilder
from service_tokens.app.tokens.token import Token
from shared.config import MAX_TTL_MINUTES
from shared.errors import ConfigError


class TestClaimsFactory:
    """Test cases for ClaimsFactory."""

    @pytest.fixture
    def factory(self, clock):
        """Create factory with issuer and audience list."""
        return ClaimsFactory(
            ttl_minutes=15,
            nbf_offset_seconds=5,
            issuer="issuer",
            audience=["web", "api"],
            claims_to_refresh=["role"],
            clock=clock,
        )

    def test_default_claims(self, factory, clock):
        """Test registered claims derived from the clock."""
        now = timestamp(clock.now())

        claims = factory.default_claims()

        assert claims["iss"] == "issuer"
        assert claims["aud"] == ["web", "api"]
        assert claims["iat"] == now
        assert claims["nbf"] == now + 5
        assert claims["exp"] == now + 15 * 60
        assert re.fullmatch(r"[0-9a-f]{32}", claims["jti"])

    def test_no_issuer_or_audience(self, clock):
        """Test iss and aud are omitted when not configured."""
        claims = ClaimsFactory(clock=clock).default_claims()

        assert "iss" not in claims
        assert "aud" not in claims

    def test_claims_to_refresh(self, factory):
        """Test refresh set always holds the time and id claims."""
        assert factory.claims_to_refresh == ("iat", "exp", "nbf", "jti", "role")

    @pytest.mark.parametrize("kwargs", [
        {"ttl_minutes": 0},
        {"ttl_minutes": MAX_TTL_MINUTES + 1},
        {"ttl_minutes": 10 ** 12},
        {"nbf_offset_seconds": -1},
        {"ttl_minutes": 1, "nbf_offset_seconds": 60},
    ])
    def test_invalid_windows(self, kwargs):
        """Test inconsistent lifetimes are rejected."""
        with pytest.raises(ConfigError):
            ClaimsFactory(**kwargs)

    def test_with_ttl(self, factory):
        """Test copy with a different lifetime."""
        shorter = factory.with_ttl(2)

        assert shorter.ttl_minutes == 2
        assert factory.ttl_minutes == 15
        assert shorter.issuer == factory.issuer


class TestClaimSetBuilder:
    """Test cases for ClaimSetBuilder."""

    def test_builders_are_immutable(self):
        """Test each step returns a new builder."""
        base = ClaimSetBuilder({"sub": "42"})
        extended = base.with_claim("role", "admin")

        assert base.build() == {"sub": "42"}
        assert extended.build() == {"sub": "42", "role": "admin"}

    def test_with_claims_and_without(self):
        """Test merge and removal."""
        builder = ClaimSetBuilder({"a": 1}).with_claims({"b": 2, "c": 3}).without("a", "c")

        assert builder.build() == {"b": 2}
        assert builder.has("b")
        assert not builder.has("a")

    def test_build_returns_copy(self):
        """Test built dict does not alias builder state."""
        builder = ClaimSetBuilder({"a": 1})
        built = builder.build()
        built["a"] = 2

        assert builder.build() == {"a": 1}


class TestToken:
    """Test cases for Token."""

    @pytest.fixture
    def token(self):
        """Create token value."""
        return Token.from_parts(
            "header.payload.signature",
            {"alg": "HS256", "typ": "JWT"},
            {
                "iss": "issuer",
                "sub": "42",
                "aud": "api",
                "iat": 1704110400,
                "nbf": 1704110400,
                "exp": 1704114000,
                "jti": "abc",
                "role": "admin",
            },
        )

    def test_accessors(self, token):
        """Test typed accessors."""
        assert token.id == "abc"
        assert token.subject == "42"
        assert token.issuer == "issuer"
        assert token.audience == ["api"]
        assert token.issued_at == from_timestamp(1704110400)
        assert token.expires_at == from_timestamp(1704114000)
        assert token.signature == "signature"
        assert str(token) == "header.payload.signature"

    def test_claims_read_only(self, token):
        """Test claims cannot be mutated."""
        with pytest.raises(TypeError):
            token.claims["role"] = "root"

    def test_claim_lookup(self, token):
        """Test get/has claim helpers."""
        assert token.get_claim("role") == "admin"
        assert token.get_claim("missing", "default") == "default"
        assert token.has_claim("jti")
        assert token.custom_claims() == {"role": "admin"}

    def test_missing_time_claims(self):
        """Test absent time claims are None."""
        token = Token.from_parts("a.b.c", {"alg": "HS256"}, {"sub": "42"})

        assert token.not_before is None
        assert token.audience == []
