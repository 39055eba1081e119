"""
Shared fixtures for Token service tests.
"""

from datetime import datetime, timezone

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from shared.config import JwtSettings
from service_tokens.app.clock import FrozenClock
from service_tokens.app.factory import build_token_manager
from service_tokens.app.revocation.cache import MemoryCache

SECRET = "test-secret-0123456789abcdef0123456789abcdef"
NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

EC_CURVES = {
    "ES256": ec.SECP256R1,
    "ES384": ec.SECP384R1,
    "ES512": ec.SECP521R1,
}


def _pem_pair(private_key, passphrase=None):
    encryption = (
        serialization.BestAvailableEncryption(passphrase.encode("utf-8"))
        if passphrase
        else serialization.NoEncryption()
    )
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=encryption,
    ).decode("utf-8")
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")
    return private_pem, public_pem


@pytest.fixture(scope="session")
def rsa_private_key():
    """RSA key shared by the whole session; generation is slow."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def rsa_keys(rsa_private_key):
    """(private PEM, public PEM) for RSA."""
    return _pem_pair(rsa_private_key)


@pytest.fixture
def encrypted_rsa_keys(rsa_private_key):
    """(encrypted private PEM, public PEM, passphrase) for RSA."""
    passphrase = "correct horse battery staple"
    private_pem, public_pem = _pem_pair(rsa_private_key, passphrase)
    return private_pem, public_pem, passphrase


@pytest.fixture
def ec_keys():
    """Factory returning (private PEM, public PEM) for an ES algorithm."""
    def _make(algorithm="ES256"):
        return _pem_pair(ec.generate_private_key(EC_CURVES[algorithm]()))
    return _make


@pytest.fixture
def clock():
    """Clock pinned to a fixed instant."""
    return FrozenClock(NOW)


@pytest.fixture
def cache(clock):
    """In-memory revocation cache sharing the test clock."""
    return MemoryCache(clock)


@pytest.fixture
def settings():
    """HS256 settings with default lifetimes, ignoring any .env file."""
    return JwtSettings(secret=SECRET, _env_file=None)


@pytest.fixture
def manager(settings, cache, clock):
    """Token manager wired with the in-memory cache and frozen clock."""
    return build_token_manager(settings, cache=cache, clock=clock)


@pytest.fixture
def secret():
    """Shared HMAC secret."""
    return SECRET
