"""
Default claim provider and immutable claim-set assembly.
"""

import secrets
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from shared.config import ALWAYS_REFRESHED_CLAIMS, MAX_TTL_MINUTES, JwtSettings
from shared.errors import ConfigError
from ..clock import Clock, SystemClock, timestamp

Audience = Union[str, List[str], None]


class ClaimsFactory:
    """Supplies issuer, audience, time window and ``jti`` for new tokens."""

    def __init__(
        self,
        ttl_minutes: int = 60,
        nbf_offset_seconds: int = 0,
        issuer: Optional[str] = None,
        audience: Audience = None,
        claims_to_refresh: Iterable[str] = (),
        clock: Optional[Clock] = None,
    ):
        if not 1 <= ttl_minutes <= MAX_TTL_MINUTES:
            raise ConfigError(f"Token TTL must be between 1 and {MAX_TTL_MINUTES} minutes")
        if nbf_offset_seconds < 0 or nbf_offset_seconds >= ttl_minutes * 60:
            raise ConfigError("nbf offset must be non-negative and shorter than the token TTL")

        self.ttl_minutes = ttl_minutes
        self.nbf_offset_seconds = nbf_offset_seconds
        self.issuer = issuer
        self.audience = list(audience) if isinstance(audience, (list, tuple)) else audience
        self.clock = clock or SystemClock()

        refresh = list(ALWAYS_REFRESHED_CLAIMS)
        for claim in claims_to_refresh:
            if claim not in refresh:
                refresh.append(claim)
        self._claims_to_refresh = tuple(refresh)

    @classmethod
    def from_settings(cls, settings: JwtSettings, clock: Optional[Clock] = None) -> "ClaimsFactory":
        return cls(
            ttl_minutes=settings.ttl_minutes,
            nbf_offset_seconds=settings.nbf_offset_seconds,
            issuer=settings.issuer,
            audience=settings.audience,
            claims_to_refresh=settings.claims_to_refresh,
            clock=clock,
        )

    @property
    def claims_to_refresh(self) -> Tuple[str, ...]:
        return self._claims_to_refresh

    def with_ttl(self, ttl_minutes: int) -> "ClaimsFactory":
        """Copy of this factory with a different token lifetime."""
        return ClaimsFactory(
            ttl_minutes=ttl_minutes,
            nbf_offset_seconds=self.nbf_offset_seconds,
            issuer=self.issuer,
            audience=self.audience,
            claims_to_refresh=self._claims_to_refresh,
            clock=self.clock,
        )

    def now(self) -> datetime:
        return self.clock.now()

    @staticmethod
    def generate_jti() -> str:
        return secrets.token_hex(16)

    def default_claims(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Registered claims for a token issued at ``now``."""
        issued = now or self.now()
        claims: Dict[str, Any] = {}
        if self.issuer:
            claims["iss"] = self.issuer
        if self.audience:
            claims["aud"] = self.audience
        claims["iat"] = timestamp(issued)
        claims["nbf"] = timestamp(issued + timedelta(seconds=self.nbf_offset_seconds))
        claims["exp"] = timestamp(issued + timedelta(minutes=self.ttl_minutes))
        claims["jti"] = self.generate_jti()
        return claims


class ClaimSetBuilder:
    """Immutable claim-set builder.

    Every ``with_*`` call returns a new builder; :meth:`build` hands back a
    plain dict for the codec.
    """

    __slots__ = ("_claims",)

    def __init__(self, claims: Optional[Mapping[str, Any]] = None):
        self._claims = MappingProxyType(dict(claims or {}))

    def with_claim(self, name: str, value: Any) -> "ClaimSetBuilder":
        claims = dict(self._claims)
        claims[name] = value
        return ClaimSetBuilder(claims)

    def with_claims(self, claims: Mapping[str, Any]) -> "ClaimSetBuilder":
        merged = dict(self._claims)
        merged.update(claims)
        return ClaimSetBuilder(merged)

    def without(self, *names: str) -> "ClaimSetBuilder":
        return ClaimSetBuilder({key: value for key, value in self._claims.items() if key not in names})

    def has(self, name: str) -> bool:
        return name in self._claims

    def build(self) -> Dict[str, Any]:
        return dict(self._claims)
