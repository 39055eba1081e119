"""
Signing algorithms and key material.

Key values accepted here are either inline PEM text or a ``file://`` path to
a PEM file. Encrypted private keys are unlocked with the configured
passphrase before they reach the codec.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from cryptography.hazmat.primitives import serialization

from shared.config import JwtSettings
from shared.errors import ConfigError

FILE_SCHEME = "file://"


class AlgorithmFamily(Enum):
    """Signer families."""
    HMAC = "hmac"
    RSA = "rsa"
    ECDSA = "ecdsa"


class Algorithm(Enum):
    """Supported JWS algorithms, tagged with their family and digest size."""

    HS256 = ("HS256", AlgorithmFamily.HMAC, 256)
    HS384 = ("HS384", AlgorithmFamily.HMAC, 384)
    HS512 = ("HS512", AlgorithmFamily.HMAC, 512)
    RS256 = ("RS256", AlgorithmFamily.RSA, 256)
    RS384 = ("RS384", AlgorithmFamily.RSA, 384)
    RS512 = ("RS512", AlgorithmFamily.RSA, 512)
    ES256 = ("ES256", AlgorithmFamily.ECDSA, 256)
    ES384 = ("ES384", AlgorithmFamily.ECDSA, 384)
    ES512 = ("ES512", AlgorithmFamily.ECDSA, 512)

    def __init__(self, jws_name: str, family: AlgorithmFamily, bits: int):
        self.jws_name = jws_name
        self.family = family
        self.bits = bits

    @property
    def is_symmetric(self) -> bool:
        return self.family is AlgorithmFamily.HMAC

    @classmethod
    def parse(cls, value: "str | Algorithm") -> "Algorithm":
        if isinstance(value, Algorithm):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ConfigError(f"Unsupported signing algorithm '{value}'")


def resolve_key_material(value: Optional[str]) -> Optional[str]:
    """Return PEM text for ``value``, reading ``file://`` references from disk."""
    if value is None or value == "":
        return None
    if not value.startswith(FILE_SCHEME):
        return value
    path = Path(value[len(FILE_SCHEME):])
    try:
        return path.read_text()
    except OSError as exc:
        raise ConfigError(
            f"Unable to read key file '{path}'",
            details={"error": str(exc)},
        ) from exc


def unlock_private_key(pem: str, passphrase: Optional[str]) -> str:
    """Decrypt an encrypted PEM private key into unencrypted PKCS#8 PEM."""
    try:
        key = serialization.load_pem_private_key(
            pem.encode("utf-8"),
            password=passphrase.encode("utf-8") if passphrase else None,
        )
    except (ValueError, TypeError) as exc:
        raise ConfigError(
            "Unable to load private key with the configured passphrase",
            details={"error": str(exc)},
        ) from exc
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


@dataclass(frozen=True)
class SignerConfig:
    """Algorithm plus the key material that algorithm needs.

    HMAC uses ``secret`` for both signing and verification; RSA and ECDSA
    sign with ``private_key`` and verify with ``public_key``.
    """

    algorithm: Algorithm
    secret: Optional[str] = None
    private_key: Optional[str] = None
    public_key: Optional[str] = None
    passphrase: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "algorithm", Algorithm.parse(self.algorithm))
        if self.algorithm.is_symmetric:
            if not self.secret:
                raise ConfigError(
                    f"A non-empty secret is required for {self.algorithm.jws_name}"
                )
        elif not self.private_key or not self.public_key:
            raise ConfigError(
                f"Both private and public keys are required for {self.algorithm.jws_name}"
            )

    @classmethod
    def hmac(cls, secret: str, algorithm: "str | Algorithm" = Algorithm.HS256) -> "SignerConfig":
        return cls(algorithm=Algorithm.parse(algorithm), secret=secret)

    @classmethod
    def asymmetric(
        cls,
        algorithm: "str | Algorithm",
        private_key: str,
        public_key: str,
        passphrase: Optional[str] = None,
    ) -> "SignerConfig":
        """Build an RSA/ECDSA config, resolving file references and passphrases."""
        private_pem = resolve_key_material(private_key)
        public_pem = resolve_key_material(public_key)
        if private_pem and passphrase:
            private_pem = unlock_private_key(private_pem, passphrase)
        return cls(
            algorithm=Algorithm.parse(algorithm),
            private_key=private_pem,
            public_key=public_pem,
            passphrase=passphrase,
        )

    @classmethod
    def from_settings(cls, settings: JwtSettings) -> "SignerConfig":
        algorithm = Algorithm.parse(settings.algorithm)
        if algorithm.is_symmetric:
            return cls.hmac(settings.secret or "", algorithm)
        return cls.asymmetric(
            algorithm,
            settings.private_key or "",
            settings.public_key or "",
            settings.passphrase or None,
        )

    @property
    def signing_key(self) -> Optional[str]:
        return self.secret if self.algorithm.is_symmetric else self.private_key

    @property
    def verification_key(self) -> Optional[str]:
        return self.secret if self.algorithm.is_symmetric else self.public_key

    def __repr__(self) -> str:
        return f"SignerConfig(algorithm={self.algorithm.jws_name})"
