"""
Shared configuration management for the Access Token Service.
"""

from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


ALWAYS_REFRESHED_CLAIMS = ("iat", "exp", "nbf", "jti")

# One hundred years; longer lifetimes run past the datetime range.
MAX_TTL_MINUTES = 100 * 365 * 24 * 60

SUPPORTED_ALGORITHMS = (
    "HS256", "HS384", "HS512",
    "RS256", "RS384", "RS512",
    "ES256", "ES384", "ES512",
)


class ParserSpec(BaseModel):
    """One entry of the request parser chain.

    ``type`` selects the extractor; ``name`` is the header, query parameter,
    cookie or body field to read and ``prefix`` only applies to headers.
    """

    model_config = ConfigDict(extra="forbid")

    type: Literal["header", "query", "cookie", "input"]
    name: Optional[str] = None
    prefix: Optional[str] = None


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = "local"
    log_level: str = "info"

    # External services
    redis_url: str = "redis://localhost:6379/0"

    # Observability
    enable_metrics: bool = True


class JwtSettings(BaseSettings):
    """Token lifecycle settings, read from ``ACCESS_JWT_*`` variables.

    Key material (``private_key``/``public_key``) may be inline PEM text or a
    ``file://`` reference; list and mapping values are given as JSON when
    they come from the environment.
    """

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_JWT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Signing
    algorithm: str = "HS256"
    secret: Optional[str] = None
    private_key: Optional[str] = None
    public_key: Optional[str] = None
    passphrase: Optional[str] = None

    # Lifetimes
    ttl_minutes: int = Field(default=60, ge=1, le=MAX_TTL_MINUTES)
    refresh_ttl_minutes: int = Field(default=20160, ge=1)
    nbf_offset_seconds: int = Field(default=0, ge=0)

    # Claims
    issuer: Optional[str] = "access-token-service"
    audience: Optional[Union[str, List[str]]] = "access-token-service"
    subject_claim_name: str = "sub"
    required_claims: Dict[str, bool] = Field(default_factory=lambda: {
        "iss": True,
        "aud": True,
        "iat": True,
        "nbf": True,
        "exp": True,
    })
    leeway_seconds: int = Field(default=0, ge=0)
    claims_to_refresh: List[str] = Field(default_factory=lambda: list(ALWAYS_REFRESHED_CLAIMS))

    # Revocation
    revocation_enabled: bool = True
    revocation_grace_period_seconds: Optional[int] = Field(default=None, ge=0)
    revocation_cache_prefix: str = "jwt_blacklist:"
    revocation_backend: Literal["memory", "redis"] = "memory"

    # Request parsing
    parser_chain: Optional[List[ParserSpec]] = None

    @field_validator("algorithm")
    @classmethod
    def _normalize_algorithm(cls, value: str) -> str:
        algorithm = value.strip().upper()
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported algorithm '{value}'")
        return algorithm

    @field_validator("claims_to_refresh")
    @classmethod
    def _include_time_claims(cls, value: List[str]) -> List[str]:
        merged = list(ALWAYS_REFRESHED_CLAIMS)
        for claim in value:
            if claim not in merged:
                merged.append(claim)
        return merged

    @model_validator(mode="after")
    def _check_windows(self) -> "JwtSettings":
        if self.refresh_ttl_minutes <= self.ttl_minutes:
            raise ValueError("refresh_ttl_minutes must exceed ttl_minutes")
        if self.nbf_offset_seconds >= self.ttl_minutes * 60:
            raise ValueError("nbf_offset_seconds must be shorter than the token lifetime")
        if self.revocation_grace_period_seconds is None:
            self.revocation_grace_period_seconds = self.refresh_ttl_minutes * 60
        return self


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port)


def get_jwt_settings(**overrides) -> JwtSettings:
    """Load token settings from the environment, applying explicit overrides."""
    return JwtSettings(**overrides)
