"""
Shared error handling for the Access Token Service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class AccessLayerException(Exception):
    """Base exception for Access Layer services."""

    status_code: int = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class JwtError(AccessLayerException):
    """Base class for every token lifecycle failure.

    Each subclass carries its own ``code`` and ``status_code`` so callers can
    map a failure to a distinct HTTP response without inspecting messages.
    """

    code: str = "JWT_ERROR"
    default_message: str = "Token error"
    status_code: int = 401

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(self.code, message or self.default_message, details)


class ConfigError(JwtError):
    """Signing material is missing or invalid, or a feature is disabled."""

    code = "JWT_CONFIG_ERROR"
    default_message = "Token service is misconfigured"
    status_code = 500


class SigningError(JwtError):
    """The underlying crypto operation failed while signing."""

    code = "JWT_SIGNING_ERROR"
    default_message = "Token could not be signed"
    status_code = 500


class MalformedToken(JwtError):
    """Input is not a well-formed compact token."""

    code = "JWT_MALFORMED"
    default_message = "Token is malformed"
    status_code = 400


class SignatureInvalid(JwtError):
    """Signature does not match the verification key."""

    code = "JWT_SIGNATURE_INVALID"
    default_message = "Token signature is invalid"


class TokenExpired(JwtError):
    """Token expiry (or refresh window) has passed."""

    code = "JWT_EXPIRED"
    default_message = "Token has expired"


class TokenNotYetValid(JwtError):
    """Token ``nbf`` lies in the future."""

    code = "JWT_NOT_YET_VALID"
    default_message = "Token is not yet valid"


class TokenInvalid(JwtError):
    """Generic claim or structure violation."""

    code = "JWT_INVALID"
    default_message = "Token is invalid"


class InvalidClaims(TokenInvalid):
    """Caller-supplied claims cannot go into a new token."""

    code = "JWT_INVALID_CLAIMS"
    default_message = "Claims cannot be used for a new token"
    status_code = 400


class TokenRevoked(TokenInvalid):
    """Token identifier is present in the revocation store."""

    code = "JWT_REVOKED"
    default_message = "Token has been revoked"


class RevocationStoreError(JwtError):
    """The revocation cache backend failed."""

    code = "JWT_REVOCATION_STORE_ERROR"
    default_message = "Revocation store is unavailable"
    status_code = 503
