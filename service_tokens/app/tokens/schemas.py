"""
Request and response models for the token endpoints.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .token import Token


class TokenVerificationRequest(BaseModel):
    """Request model for token verification."""
    token: str


class TokenRefreshRequest(BaseModel):
    """Request model for token refresh."""
    token: str
    force_forever: bool = False
    reset_claims: bool = False


class TokenRevocationRequest(BaseModel):
    """Request model for logout/revocation."""
    token: str
    force_forever: bool = False


class TokenResponse(BaseModel):
    """Response model for an issued token."""
    access_token: str
    token_type: str = "Bearer"
    expires_in: Optional[int] = None
    jti: Optional[str] = None

    @classmethod
    def from_token(cls, token: Token) -> "TokenResponse":
        exp = token.get_claim("exp")
        iat = token.get_claim("iat")
        expires_in = int(exp - iat) if isinstance(exp, (int, float)) and isinstance(iat, (int, float)) else None
        return cls(access_token=token.to_string(), expires_in=expires_in, jti=token.id)


class TokenVerificationResponse(BaseModel):
    """Response model for token verification."""
    valid: bool
    claims: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    code: Optional[str] = None


class TokenInfoResponse(BaseModel):
    """Response model for the current token."""
    subject: Optional[str] = None
    jti: Optional[str] = None
    issuer: Optional[str] = None
    audience: List[str] = Field(default_factory=list)
    expires_at: Optional[int] = None
    claims: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_token(cls, token: Token) -> "TokenInfoResponse":
        subject = token.subject
        return cls(
            subject=None if subject is None else str(subject),
            jti=token.id,
            issuer=token.issuer,
            audience=token.audience,
            expires_at=token.get_claim("exp"),
            claims=token.custom_claims(),
        )
