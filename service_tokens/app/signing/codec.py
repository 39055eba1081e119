"""
Compact JWS encoding and verification.
"""

import json
from typing import Any, Dict, Mapping, Optional, Tuple

from jose import jwk, jws
from jose.backends.base import Key
from jose.exceptions import JOSEError, JWKError, JWSError
from jose.utils import base64url_decode

from shared.errors import ConfigError, MalformedToken, SignatureInvalid, SigningError
from shared.logging import get_logger
from .keys import SignerConfig
from ..tokens.token import Token


class TokenCodec:
    """Turns claim sets into signed compact tokens and back.

    The codec holds no mutable state: keys are constructed once from the
    :class:`SignerConfig` and reused for every call.
    """

    def __init__(self, config: SignerConfig):
        self.config = config
        self.logger = get_logger("tokens.codec")
        self._signing_key = self._construct_key(config.signing_key, "signing")
        self._verification_key = self._construct_key(config.verification_key, "verification")

    @property
    def algorithm(self) -> str:
        return self.config.algorithm.jws_name

    def _construct_key(self, material: Optional[str], purpose: str) -> Key:
        if not material:
            raise ConfigError(f"No {purpose} key configured for {self.algorithm}")
        try:
            return jwk.construct(material, self.algorithm)
        except (JWKError, JOSEError, ValueError, TypeError) as exc:
            raise ConfigError(
                f"Invalid {purpose} key for {self.algorithm}",
                details={"error": str(exc)},
            ) from exc

    def encode(self, claims: Mapping[str, Any], headers: Optional[Mapping[str, Any]] = None) -> str:
        """Serialize and sign ``claims``; returns the compact token string."""
        extra_headers = {key: value for key, value in (headers or {}).items() if key != "alg"}
        try:
            return jws.sign(
                dict(claims),
                self._signing_key,
                headers=extra_headers,
                algorithm=self.algorithm,
            )
        except (JOSEError, TypeError, ValueError) as exc:
            self.logger.error("Token signing failed", algorithm=self.algorithm, error=str(exc))
            raise SigningError(
                f"Unable to sign token with {self.algorithm}",
                details={"error": str(exc)},
            ) from exc

    def decode(self, token: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """Split ``token`` into its header and claims without checking the signature."""
        if not isinstance(token, str) or not token.strip():
            raise MalformedToken("Token must be a non-empty string")

        parts = token.strip().split(".")
        if len(parts) != 3:
            raise MalformedToken("Token must have three dot-separated segments")
        header_segment, payload_segment, signature_segment = parts
        if not signature_segment:
            raise MalformedToken("Token is not signed")

        header = self._decode_json_segment(header_segment, "header")
        claims = self._decode_json_segment(payload_segment, "payload")
        if not isinstance(header.get("alg"), str):
            raise MalformedToken("Token header does not declare an algorithm")

        try:
            base64url_decode(signature_segment.encode("ascii"))
        except ValueError as exc:
            raise MalformedToken("Token signature is not valid base64url") from exc

        return header, claims

    def verify_signature(self, token: str) -> Dict[str, Any]:
        """Decode ``token`` and check its signature; returns the claims."""
        _, claims = self._verified_parts(token)
        return claims

    def verify(self, token: str) -> Token:
        """Like :meth:`verify_signature` but returns a :class:`Token` value."""
        header, claims = self._verified_parts(token)
        return Token.from_parts(token.strip(), header, claims)

    def _verified_parts(self, token: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        header, claims = self.decode(token)

        declared = header["alg"]
        if declared != self.algorithm:
            raise SignatureInvalid(
                f"Token algorithm '{declared}' does not match the configured {self.algorithm}"
            )

        try:
            jws.verify(token.strip(), self._verification_key, algorithms=[self.algorithm])
        except JWSError as exc:
            raise SignatureInvalid(details={"error": str(exc)}) from exc

        return header, claims

    @staticmethod
    def _decode_json_segment(segment: str, name: str) -> Dict[str, Any]:
        if not segment:
            raise MalformedToken(f"Token {name} segment is empty")
        try:
            decoded = json.loads(base64url_decode(segment.encode("ascii")).decode("utf-8"))
        except ValueError as exc:
            raise MalformedToken(f"Token {name} could not be decoded") from exc
        if not isinstance(decoded, dict):
            raise MalformedToken(f"Token {name} must be a JSON object")
        return decoded
